import logging
import os
import random
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .. import BaseGenerator, ContentValidator
from .chapter import build_chapter
from .cover import build_cover_image
from .exceptions import ArchiveAssemblyError, EmptyExportError
from .fetcher import Fetch, ImageFetcher
from .images import prepare_images_for_epub
from .models import ArticleItem, Chapter, ExportContext, PackageMetadata, ZipEntry
from .package import (
    COVER_IMAGE_HREF,
    COVER_PAGE_HREF,
    assemble_package,
    build_cover_page,
)
from .text import slugify
from .zip_writer import build_zip

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "To Be Read"
DEFAULT_CREATOR = "Tsundoku"
MIMETYPE = b"application/epub+zip"

Progress = Callable[[int, int, str], None]


def make_book_id() -> str:
    return f"urn:uuid:{uuid.uuid4()}"


def today() -> str:
    return datetime.now(timezone.utc).strftime('%Y-%m-%d')


def export_filename(title: str, export_date: str) -> str:
    """File name for an export, e.g. ``to-be-read-2024-05-01.epub``."""
    return f"{slugify(title) or 'to-be-read'}-{export_date}.epub"


def _to_article(item: Union[ArticleItem, Dict[str, Any]]) -> ArticleItem:
    if isinstance(item, ArticleItem):
        return item
    return ArticleItem.from_dict(item)


def _render_chapter(article: ArticleItem, index: int, context: ExportContext,
                    fetch: Optional[Fetch]) -> Chapter:
    chapter_id = f"chap-{index}"
    if fetch is not None and article.content_html:
        try:
            html = prepare_images_for_epub(article.content_html, article.url, context, fetch)
            article = replace(article, content_html=html)
        except Exception as e:
            logger.warning(f"Image embedding failed for chapter {index}, keeping original HTML: {e}")

    return Chapter(
        id=chapter_id,
        title=article.title or f"Chapter {index}",
        href=f"chapters/{chapter_id}.xhtml",
        content=build_chapter(article, index),
    )


def build_epub(items: Iterable[Union[ArticleItem, Dict[str, Any]]],
               title: str = DEFAULT_TITLE,
               creator: str = DEFAULT_CREATOR,
               exported_at: str = "",
               fetch: Optional[Fetch] = None,
               rng: Optional[random.Random] = None,
               book_id: Optional[str] = None,
               embed_images: bool = True,
               progress: Optional[Progress] = None) -> bytes:
    """Build an EPUB3 book from queued articles.

    Args:
        items: Articles in reading order (``ArticleItem`` or plain dicts).
        title: Book title.
        creator: Author metadata.
        exported_at: ``YYYY-MM-DD`` export date, defaults to today (UTC).
        fetch: Image fetch callable; a requests-backed fetcher is used when
            omitted.
        rng: Random source for the cover palette.
        book_id: Package identifier, generated when omitted.
        embed_images: Whether remote images are pulled into the book.
        progress: Called as ``progress(current, total, title)`` per chapter.

    Returns:
        bytes: The EPUB container.

    Raises:
        EmptyExportError: if there are no items.
        ArchiveAssemblyError: if the container cannot be written.
    """
    articles = [_to_article(item) for item in (items or [])]
    if not articles:
        raise EmptyExportError("No items to export")

    title = (title or "").strip() or DEFAULT_TITLE
    creator = (creator or "").strip() or DEFAULT_CREATOR
    export_date = exported_at or today()
    if book_id and not book_id.startswith("urn:uuid:"):
        book_id = f"urn:uuid:{book_id}"
    metadata = PackageMetadata(
        book_id=book_id or make_book_id(),
        title=title,
        creator=creator,
        export_date=export_date,
        modified=f"{export_date}T00:00:00Z",
    )

    logger.info(f"Building EPUB '{title}' from {len(articles)} articles")

    context = ExportContext()
    owned_fetcher = None
    if embed_images and fetch is None:
        owned_fetcher = fetch = ImageFetcher()

    chapters: List[Chapter] = []
    try:
        for index, article in enumerate(articles, 1):
            chapters.append(_render_chapter(article, index, context, fetch if embed_images else None))
            if progress:
                progress(index, len(articles), chapters[-1].title)
    finally:
        if owned_fetcher is not None:
            owned_fetcher.close()

    cover_image = build_cover_image(title, creator, export_date, rng=rng)
    documents = assemble_package(metadata, chapters, context.assets)

    # mimetype must be the first entry, stored, with no extra field
    entries = [
        ZipEntry("mimetype", MIMETYPE),
        ZipEntry("META-INF/container.xml", documents["META-INF/container.xml"].encode('utf-8')),
        ZipEntry("OEBPS/styles.css", documents["OEBPS/styles.css"].encode('utf-8')),
        ZipEntry(f"OEBPS/{COVER_IMAGE_HREF}", cover_image),
        ZipEntry(f"OEBPS/{COVER_PAGE_HREF}", build_cover_page(title).encode('utf-8')),
        ZipEntry("OEBPS/content.opf", documents["OEBPS/content.opf"].encode('utf-8')),
        ZipEntry("OEBPS/nav.xhtml", documents["OEBPS/nav.xhtml"].encode('utf-8')),
        ZipEntry("OEBPS/toc.ncx", documents["OEBPS/toc.ncx"].encode('utf-8')),
    ]
    entries.extend(ZipEntry(f"OEBPS/{chapter.href}", chapter.content.encode('utf-8')) for chapter in chapters)
    entries.extend(ZipEntry(f"OEBPS/{asset.href}", asset.data) for asset in context.assets)

    try:
        buffer = build_zip(entries)
    except ArchiveAssemblyError:
        raise
    except Exception as e:
        raise ArchiveAssemblyError(f"Could not write EPUB container: {e}") from e

    logger.info(f"EPUB built: {len(chapters)} chapters, {len(context.assets)} images, {len(buffer)} bytes")
    return buffer


class EPUBGenerator(BaseGenerator):
    """
    EPUB generator for queued articles.

    Writes one book per call, named after the title and export date unless
    an explicit output path is given.
    """

    DEFAULT_EPUB_CONFIG = {
        'title': DEFAULT_TITLE,
        'creator': DEFAULT_CREATOR,
        'embed_images': True,
        'cover_seed': None,
    }

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.epub_config = dict(self.DEFAULT_EPUB_CONFIG)
        self.epub_config.update(config.get('epub') or {})
        self.output_dir = config.get('directories', {}).get('output_dir', 'output')

    def validate_config(self) -> bool:
        """Validate EPUB generator configuration"""
        if not isinstance(self.config.get('epub', {}), dict):
            self.logger.error("Config section 'epub' must be a mapping")
            return False
        seed = self.epub_config.get('cover_seed')
        if seed is not None and not isinstance(seed, int):
            self.logger.error(f"cover_seed must be an integer, got {seed!r}")
            return False
        return True

    def get_supported_formats(self) -> List[str]:
        return ['epub']

    def generate(self, items: List[Any], output_path: Optional[str] = None, **kwargs) -> str:
        """
        Generate an EPUB file from queued articles

        Args:
            items: Articles in reading order
            output_path: Target file, defaults to ``{output_dir}/{slug}-{date}.epub``
            **kwargs: ``title``, ``creator``, ``exported_at``, ``embed_images``,
                ``seed``, ``fetch`` and ``progress`` overrides

        Returns:
            str: Path to the generated file
        """
        is_valid, errors = ContentValidator.validate_articles(items)
        if not is_valid:
            raise EmptyExportError("; ".join(errors))

        if not self.validate_config():
            raise ValueError("Invalid configuration for EPUB generation")

        title = kwargs.get('title') or self.epub_config['title']
        creator = kwargs.get('creator') or self.epub_config['creator']
        export_date = kwargs.get('exported_at') or today()
        embed_images = kwargs.get('embed_images', self.epub_config['embed_images'])
        seed = kwargs.get('seed', self.epub_config.get('cover_seed'))
        rng = random.Random(seed) if seed is not None else None

        fetch = kwargs.get('fetch')
        owned_fetcher = None
        if embed_images and fetch is None:
            owned_fetcher = fetch = ImageFetcher(self.config)

        try:
            buffer = build_epub(
                items,
                title=title,
                creator=creator,
                exported_at=export_date,
                fetch=fetch,
                rng=rng,
                embed_images=embed_images,
                progress=kwargs.get('progress'),
            )
        finally:
            if owned_fetcher is not None:
                owned_fetcher.close()

        if not output_path:
            os.makedirs(self.output_dir, exist_ok=True)
            output_path = os.path.join(self.output_dir, export_filename(title, export_date))
        else:
            parent = os.path.dirname(output_path)
            if parent:
                os.makedirs(parent, exist_ok=True)

        with open(output_path, 'wb') as f:
            f.write(buffer)

        self.logger.info(f"EPUB written: {output_path}")
        return output_path

"""
Data records passed between the EPUB export stages.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Set

from .text import make_excerpt, word_count as count_words


IMAGE_EXTENSIONS = {
    'image/jpeg': 'jpg',
    'image/jpg': 'jpg',
    'image/png': 'png',
    'image/gif': 'gif',
    'image/webp': 'webp',
    'image/svg+xml': 'svg',
    'image/bmp': 'bmp',
    'image/tiff': 'tif',
    'image/avif': 'avif',
}


@dataclass
class ArticleItem:
    """A saved article as handed over by the queue store."""
    id: str = ""
    url: str = ""
    title: str = ""
    byline: str = ""
    site: str = ""
    created_at: str = ""
    published_at: str = ""
    modified_at: str = ""
    content_html: str = ""
    content_text: str = ""
    tagline: str = ""
    excerpt: str = ""
    word_count: int = 0
    queue_id: str = "default"
    order: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ArticleItem':
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key not in known or value is None:
                continue
            values[key] = value
        item = cls(**values)
        if not item.queue_id:
            item.queue_id = "default"
        if not item.excerpt and item.content_text:
            item.excerpt = make_excerpt(item.content_text)
        if not item.word_count and item.content_text:
            item.word_count = count_words(item.content_text)
        return item


@dataclass
class ZipEntry:
    name: str
    data: bytes


@dataclass
class ZipRecord:
    """Bookkeeping for one written local entry, used to emit the central directory."""
    name_bytes: bytes
    crc32: int
    size: int
    offset: int


@dataclass
class ImageAsset:
    id: str
    href: str
    media_type: str
    data: bytes


@dataclass
class Chapter:
    id: str
    title: str
    href: str
    content: str


@dataclass
class PackageMetadata:
    book_id: str
    title: str
    creator: str
    export_date: str
    modified: str


@dataclass
class ExportContext:
    """Image bookkeeping for a single export.

    ``cache`` maps a resolved image URL to the asset created for it, so the
    same URL is only fetched and stored once per book. URLs in ``failed``
    are not retried. A context must not be shared between exports.
    """
    cache: Dict[str, ImageAsset] = field(default_factory=dict)
    assets: List[ImageAsset] = field(default_factory=list)
    failed: Set[str] = field(default_factory=set)
    next_id: int = 1
    href_prefix: str = "../"

    def register(self, url: str, data: bytes, media_type: str) -> ImageAsset:
        extension = IMAGE_EXTENSIONS.get(media_type, 'jpg')
        asset_id = f"img-{self.next_id}"
        asset = ImageAsset(
            id=asset_id,
            href=f"images/{asset_id}.{extension}",
            media_type=media_type,
            data=data,
        )
        self.next_id += 1
        self.cache[url] = asset
        self.assets.append(asset)
        return asset

    def local_src(self, asset: ImageAsset) -> str:
        return f"{self.href_prefix}{asset.href}"

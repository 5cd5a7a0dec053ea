"""
Image Embedding
===============

Localizes the images referenced by an article's HTML.

Two modes share the same source resolution rules:
- ``prepare_images_for_epub`` stores each distinct image once per export as
  a package asset (``images/img-N.ext``) and points ``<img src>`` at it.
- ``inline_images_in_html`` rewrites every image to a ``data:`` URL, for
  single-file HTML output.

Source resolution for an ``<img>``:
1. a real ``src`` (not a lazy-load placeholder such as a spacer GIF),
2. the first lazy-load attribute (``data-src``, ``data-original``, ...),
3. the best ``srcset`` candidate, also looking at lazy ``srcset`` variants
   and ``<source>`` siblings inside a ``<picture>``.

Images are handled one at a time in document order, so a URL is always
fully fetched (or found in the cache) before the next image looks it up.
Any per-image failure leaves the image pointing at its remote URL.
"""

import base64
import binascii
import logging
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import unquote, unquote_to_bytes, urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from .exceptions import ImageFetchError
from .fetcher import Fetch, ImageFetcher
from .models import ExportContext

logger = logging.getLogger(__name__)

LAZY_SRC_ATTRIBUTES = ('data-src', 'data-original', 'data-lazy-src', 'data-actualsrc', 'data-url')
SRCSET_ATTRIBUTES = ('srcset', 'data-srcset', 'data-lazy-srcset', 'data-original-set')
STALE_ATTRIBUTES = LAZY_SRC_ATTRIBUTES + SRCSET_ATTRIBUTES + ('sizes', 'data-sizes', 'loading', 'decoding')

# Inline images shorter than this are spacer pixels, not content
PLACEHOLDER_DATA_URL_LIMIT = 256

MEDIA_TYPES_BY_EXTENSION = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
    'webp': 'image/webp',
    'svg': 'image/svg+xml',
    'bmp': 'image/bmp',
    'tif': 'image/tiff',
    'tiff': 'image/tiff',
    'avif': 'image/avif',
}
DEFAULT_MEDIA_TYPE = 'image/jpeg'

PREFERRED_FORMATS = ('jpg', 'jpeg', 'png')
FALLBACK_FORMATS = ('gif', 'svg', 'bmp', 'tif', 'tiff')


def _is_script_url(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower().startswith('javascript:')


def is_placeholder_src(src: Optional[str]) -> bool:
    value = (src or '').strip().lower()
    if not value or value == 'about:blank' or value.startswith('data:,'):
        return True
    if value.startswith(('data:image/gif', 'data:image/png')) and len(value) < PLACEHOLDER_DATA_URL_LIMIT:
        return True
    return False


def _is_usable(src: Optional[str]) -> bool:
    return not is_placeholder_src(src) and not _is_script_url(src)


def parse_srcset(value: Optional[str]) -> List[Tuple[str, str]]:
    """Split a srcset into ``(url, descriptor)`` pairs.

    URLs run to the next whitespace, so commas inside a URL (including
    ``data:`` URLs) are kept.
    """
    text = value or ''
    length = len(text)
    candidates = []
    position = 0
    while position < length:
        while position < length and (text[position].isspace() or text[position] == ','):
            position += 1
        if position >= length:
            break
        start = position
        while position < length and not text[position].isspace():
            position += 1
        url = text[start:position]
        descriptor = ''
        if url.endswith(','):
            url = url.rstrip(',')
        else:
            end = text.find(',', position)
            if end == -1:
                end = length
            descriptor = text[position:end].strip()
            position = end
        if url:
            candidates.append((url, descriptor))
    return candidates


def image_format(url: str) -> str:
    """Lower-case format name from a data URL media type or a path extension."""
    lower = url.strip().lower()
    if lower.startswith('data:'):
        media_type = lower[5:].split(',', 1)[0].split(';', 1)[0]
        for extension, known in MEDIA_TYPES_BY_EXTENSION.items():
            if known == media_type:
                return extension
        return ''
    path = urlparse(lower).path
    if '.' not in path.rsplit('/', 1)[-1]:
        return ''
    return path.rsplit('.', 1)[-1]


def format_preference(url: str) -> int:
    fmt = image_format(url)
    if fmt in PREFERRED_FORMATS:
        return 2
    if fmt in FALLBACK_FORMATS:
        return 1
    return 0


def descriptor_size(descriptor: str) -> float:
    """Width descriptors count as-is; density descriptors are scaled by 1000."""
    size = 0.0
    for token in descriptor.lower().split():
        try:
            if token.endswith('w'):
                size = max(size, float(token[:-1]))
            elif token.endswith('x'):
                size = max(size, float(token[:-1]) * 1000)
        except ValueError:
            continue
    return size


def score_candidate(url: str, descriptor: str) -> float:
    return format_preference(url) * 100000 + descriptor_size(descriptor)


def _best_candidate(candidates: Iterable[Tuple[str, str]]) -> Optional[str]:
    best_url = None
    best_score = -1.0
    for url, descriptor in candidates:
        if not _is_usable(url):
            continue
        score = score_candidate(url, descriptor)
        if score > best_score:
            best_url, best_score = url, score
    return best_url


def pick_srcset_candidate(srcset: Optional[str]) -> Optional[str]:
    """Best usable URL from a srcset, or None."""
    return _best_candidate(parse_srcset(srcset))


def _srcset_values(img: Tag) -> Iterable[str]:
    for attribute in SRCSET_ATTRIBUTES:
        if img.get(attribute):
            yield img[attribute]
    parent = img.parent
    if isinstance(parent, Tag) and parent.name == 'picture':
        for source in parent.find_all('source', recursive=False):
            for attribute in SRCSET_ATTRIBUTES:
                if source.get(attribute):
                    yield source[attribute]


def select_image_source(img: Tag) -> Optional[str]:
    """Choose the URL an ``<img>`` really shows, before resolution."""
    src = (img.get('src') or '').strip()
    if _is_usable(src):
        return src

    for attribute in LAZY_SRC_ATTRIBUTES:
        value = (img.get(attribute) or '').strip()
        if _is_usable(value):
            return value

    candidates = []
    for srcset in _srcset_values(img):
        candidates.extend(parse_srcset(srcset))
    return _best_candidate(candidates)


def resolve_image_url(src: str, base_url: str) -> Optional[str]:
    """Absolute URL for ``src``; ``data:``/``blob:`` pass through, scripts are rejected."""
    value = (src or '').strip()
    lower = value.lower()
    if not value or lower.startswith('javascript:'):
        return None
    if lower.startswith(('data:', 'blob:')):
        return value
    if value.startswith('//'):
        scheme = urlparse(base_url or '').scheme or 'https'
        return f"{scheme}:{value}"
    return urljoin(base_url or '', value)


def normalize_media_type(value: str) -> str:
    media_type = (value or '').split(';', 1)[0].strip().lower()
    if media_type == 'image/jpg':
        return 'image/jpeg'
    return media_type


def media_type_for(content_type: str, url: str) -> str:
    """Response content type, else the URL's extension, else JPEG."""
    media_type = normalize_media_type(content_type)
    if media_type.startswith('image/'):
        return media_type
    return MEDIA_TYPES_BY_EXTENSION.get(image_format(url), DEFAULT_MEDIA_TYPE)


def decode_data_url(url: str) -> Tuple[str, bytes]:
    """Decode a ``data:`` URL into ``(media_type, bytes)``.

    Raises:
        ImageFetchError: if the URL is malformed or carries no bytes.
    """
    header, separator, payload = url.partition(',')
    if not separator or not header.lower().startswith('data:'):
        raise ImageFetchError(f"Malformed data URL: {url[:60]}")

    params = header[5:].split(';')
    is_base64 = any(param.strip().lower() == 'base64' for param in params[1:])
    try:
        if is_base64:
            encoded = ''.join(unquote(payload).split())
            # browsers accept base64 without trailing '=' padding
            encoded += '=' * (-len(encoded) % 4)
            data = base64.b64decode(encoded)
        else:
            data = unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as e:
        raise ImageFetchError(f"Undecodable data URL: {e}") from e

    if not data:
        raise ImageFetchError("Empty data URL")
    media_type = normalize_media_type(params[0])
    if not media_type.startswith('image/'):
        media_type = DEFAULT_MEDIA_TYPE
    return media_type, data


def load_image(url: str, fetch: Fetch) -> Tuple[str, bytes]:
    """Bytes and media type for a resolved image URL.

    ``data:`` URLs are decoded locally; anything else goes through ``fetch``.

    Raises:
        ImageFetchError: if the image cannot be obtained.
    """
    if url.lower().startswith('data:'):
        return decode_data_url(url)

    try:
        response = fetch(url)
    except ImageFetchError:
        raise
    except Exception as e:
        raise ImageFetchError(f"Failed to fetch {url}: {e}") from e

    if not response.ok:
        raise ImageFetchError(f"HTTP {response.status} for {url}")
    if not response.content:
        raise ImageFetchError(f"Empty response for {url}")
    return media_type_for(response.content_type, url), response.content


def _strip_stale_attributes(img: Tag) -> None:
    for attribute in STALE_ATTRIBUTES:
        if attribute in img.attrs:
            del img.attrs[attribute]


def _remove_picture_sources(soup: BeautifulSoup) -> None:
    for picture in soup.find_all('picture'):
        for source in picture.find_all('source'):
            source.decompose()


def _resolve_img(img: Tag, base_url: str) -> Optional[str]:
    source = select_image_source(img)
    if source is None:
        if _is_script_url(img.get('src')):
            del img.attrs['src']
        return None
    url = resolve_image_url(source, base_url)
    if url is None or url.lower().startswith('blob:'):
        return None
    return url


def _parse_images(html: str) -> Tuple[Optional[BeautifulSoup], List[Tag]]:
    if not html or '<img' not in html.lower():
        return None, []
    soup = BeautifulSoup(html, 'html.parser')
    return soup, soup.find_all('img')


def prepare_images_for_epub(html: str, base_url: str, context: ExportContext,
                            fetch: Optional[Fetch] = None) -> str:
    """Rewrite every ``<img>`` in ``html`` to a package asset.

    New assets are appended to ``context.assets`` and cached by URL in
    ``context.cache``; a URL seen earlier in the same export reuses its
    asset. HTML without images is returned unchanged.
    """
    soup, images = _parse_images(html)
    if not images:
        return html

    owned_fetcher = None
    if fetch is None:
        owned_fetcher = fetch = ImageFetcher()
    embedded = reused = failed = 0

    try:
        for img in images:
            url = _resolve_img(img, base_url)
            if url is None:
                continue

            asset = context.cache.get(url)
            if asset is not None:
                reused += 1
            elif url in context.failed:
                img['src'] = url
                failed += 1
                continue
            else:
                try:
                    media_type, data = load_image(url, fetch)
                except ImageFetchError as e:
                    logger.debug(f"Keeping remote image, {e}")
                    context.failed.add(url)
                    img['src'] = url
                    failed += 1
                    continue
                asset = context.register(url, data, media_type)
                embedded += 1

            img['src'] = context.local_src(asset)
            _strip_stale_attributes(img)
    finally:
        if owned_fetcher is not None:
            owned_fetcher.close()

    _remove_picture_sources(soup)
    logger.debug(f"Images for {base_url or 'article'}: {embedded} embedded, "
                 f"{reused} reused, {failed} left remote")
    return str(soup)


def to_data_url(media_type: str, data: bytes) -> str:
    return f"data:{media_type};base64,{base64.b64encode(data).decode('ascii')}"


def inline_images_in_html(html: str, base_url: str, fetch: Optional[Fetch] = None) -> str:
    """Rewrite every ``<img>`` in ``html`` to an inline ``data:`` URL."""
    soup, images = _parse_images(html)
    if not images:
        return html

    owned_fetcher = None
    if fetch is None:
        owned_fetcher = fetch = ImageFetcher()
    cache: Dict[str, Optional[str]] = {}

    try:
        for img in images:
            url = _resolve_img(img, base_url)
            if url is None:
                continue

            if url.lower().startswith('data:'):
                data_url = url
            elif url in cache:
                data_url = cache[url]
            else:
                try:
                    media_type, data = load_image(url, fetch)
                    data_url = to_data_url(media_type, data)
                except ImageFetchError as e:
                    logger.debug(f"Keeping remote image, {e}")
                    data_url = None
                cache[url] = data_url

            if data_url is None:
                img['src'] = url
                continue
            img['src'] = data_url
            _strip_stale_attributes(img)
    finally:
        if owned_fetcher is not None:
            owned_fetcher.close()

    _remove_picture_sources(soup)
    return str(soup)

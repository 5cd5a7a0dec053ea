#!/usr/bin/env python3
"""
EPUB Generator
==============

EPUB3 book generation from queued web articles.

Features:
- One XHTML chapter per article, in queue order
- Navigation document and NCX table of contents
- Generated cover image
- Remote images fetched once per URL and stored inside the book
- Stored (uncompressed) ZIP container with ``mimetype`` first

Dependencies:
- beautifulsoup4: HTML image rewriting
- pillow: Cover image drawing
- requests: Image download
"""

from .chapter import build_chapter
from .cover import build_cover_image
from .epub_generator import EPUBGenerator, build_epub, export_filename
from .exceptions import (
    ArchiveAssemblyError,
    ContentFallbackError,
    CoverRenderError,
    EmptyExportError,
    EpubExportError,
    ImageFetchError,
)
from .fetcher import FetchResponse, ImageFetcher
from .images import inline_images_in_html, prepare_images_for_epub
from .models import ArticleItem, ExportContext
from .zip_writer import build_zip, crc32

__version__ = "1.0.0"
__all__ = [
    'ArchiveAssemblyError',
    'ArticleItem',
    'ContentFallbackError',
    'CoverRenderError',
    'EPUBGenerator',
    'EmptyExportError',
    'EpubExportError',
    'ExportContext',
    'FetchResponse',
    'ImageFetchError',
    'ImageFetcher',
    'build_chapter',
    'build_cover_image',
    'build_epub',
    'build_zip',
    'crc32',
    'export_filename',
    'inline_images_in_html',
    'prepare_images_for_epub',
]

#!/usr/bin/env python3
"""
EPUB Export Exception Classes
"""

class EpubExportError(Exception):
    """Base exception for EPUB export errors"""
    pass

class ArchiveAssemblyError(EpubExportError):
    """Raised when the ZIP container cannot be assembled"""
    pass

class EmptyExportError(EpubExportError):
    """Raised when an export is requested with no articles"""
    pass

class ImageFetchError(EpubExportError):
    """Raised when an image cannot be fetched or decoded"""
    pass

class CoverRenderError(EpubExportError):
    """Raised when the cover image cannot be drawn"""
    pass

class ContentFallbackError(EpubExportError):
    """Raised when an article carries neither HTML nor text content"""
    pass

#!/usr/bin/env python3
"""
Content Generators Package
==========================

Output format generators for queued articles.

Available generators:
- epub: EPUB3 book generation

Base Classes:
- BaseGenerator: Abstract interface for all generators
- ContentValidator: Validates queued articles before generation
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, Tuple
import logging


class BaseGenerator(ABC):
    """Abstract base class for all content generators."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def generate(self, items: List[Any], output_path: Optional[str] = None, **kwargs) -> str:
        """Generate output from queued articles.

        Args:
            items: Articles in reading order
            output_path: Path for output file
            **kwargs: Generator-specific options

        Returns:
            str: Path to the generated file
        """
        pass

    @abstractmethod
    def validate_config(self) -> bool:
        """Validate generator configuration.

        Returns:
            bool: True if config is valid, False otherwise
        """
        pass

    def get_supported_formats(self) -> List[str]:
        """Return list of supported output formats."""
        return []


class ContentValidator:
    """Validates queued articles before generation."""

    @staticmethod
    def has_content(item: Any) -> bool:
        """Whether an article carries HTML or plain text to render."""
        if isinstance(item, dict):
            return bool(item.get('content_html') or item.get('content_text'))
        return bool(getattr(item, 'content_html', '') or getattr(item, 'content_text', ''))

    @staticmethod
    def validate_articles(items: List[Any]) -> Tuple[bool, List[str]]:
        """Validate a list of articles.

        Articles without content are still exported with a placeholder body,
        so they are logged rather than rejected.

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        if not items:
            return False, ["No items to export"]

        errors = []
        logger = logging.getLogger(__name__)
        for i, item in enumerate(items):
            if not isinstance(item, dict) and not hasattr(item, 'content_html'):
                errors.append(f"Invalid article at index {i}")
            elif not ContentValidator.has_content(item):
                logger.warning(f"Article at index {i} has no content")

        return len(errors) == 0, errors


from .epub import EPUBGenerator  # noqa: E402

__all__ = ['BaseGenerator', 'ContentValidator', 'EPUBGenerator']
__version__ = "1.0.0"

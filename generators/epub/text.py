"""
Text helpers shared by the EPUB document builders.
"""

import re
from datetime import datetime
from typing import Any, Optional


def escape_xml(value: Any) -> str:
    """Escape a value for use in XML text and attribute content."""
    text = "" if value is None else str(value)
    return (text.replace('&', '&amp;')
                .replace('<', '&lt;')
                .replace('>', '&gt;')
                .replace('"', '&quot;')
                .replace("'", '&apos;'))


def normalize_whitespace(text: Any) -> str:
    return re.sub(r'\s+', ' ', str(text or '')).strip()


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp, returning None when it is not one."""
    raw = normalize_whitespace(value)
    if not raw:
        return None
    if raw.endswith(('Z', 'z')):
        raw = raw[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def format_datetime(value: Any) -> str:
    """Format a timestamp for display, e.g. ``Mar 05, 2024, 09:30 AM UTC``.

    Values that are not ISO timestamps are returned whitespace-normalized so
    free-form dates from article metadata still show up.
    """
    if not value:
        return ""
    parsed = parse_datetime(value)
    if parsed is None:
        return normalize_whitespace(value)
    formatted = parsed.strftime('%b %d, %Y, %I:%M %p')
    zone = parsed.strftime('%Z')
    return f"{formatted} {zone}" if zone else formatted


def format_byline(value: Any) -> str:
    """Normalize a byline to the ``By <name>`` form."""
    if not value:
        return ""
    cleaned = re.sub(r'^by\s+', '', str(value).strip(), flags=re.IGNORECASE)
    return f"By {cleaned}" if cleaned else ""


def make_excerpt(text: Any, limit: int = 200) -> str:
    """Shorten text to roughly ``limit`` characters on a word boundary."""
    normalized = normalize_whitespace(text)
    if len(normalized) <= limit:
        return normalized
    head = normalized[:limit]
    last_space = head.rfind(' ')
    return f"{head[:last_space if last_space > 60 else limit]}..."


def word_count(text: Any) -> int:
    normalized = normalize_whitespace(text)
    return len(normalized.split(' ')) if normalized else 0


def slugify(value: Any) -> str:
    slug = re.sub(r'[^a-z0-9]+', '-', str(value or '').lower())
    return slug.strip('-')[:80]

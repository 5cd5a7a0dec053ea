"""
Chapter rendering: one saved article becomes one standalone XHTML document.
"""

import logging
from typing import List

from .exceptions import ContentFallbackError
from .models import ArticleItem
from .text import escape_xml, format_byline, format_datetime

logger = logging.getLogger(__name__)

NO_CONTENT_MARKUP = "<p>No content available.</p>"


def build_meta_lines(item: ArticleItem) -> List[str]:
    """Byline and publication dates, in display order."""
    lines = []
    byline = format_byline(item.byline)
    if byline:
        lines.append(f'<p class="byline">{escape_xml(byline)}</p>')

    published = format_datetime(item.published_at)
    if published:
        lines.append(f'<p class="meta">Published at {escape_xml(published)}</p>')

    edited = format_datetime(item.modified_at)
    if edited and edited != published:
        lines.append(f'<p class="meta">Edited at {escape_xml(edited)}</p>')

    return lines


def build_body(item: ArticleItem) -> str:
    if item.content_html:
        return item.content_html
    if item.content_text:
        return f"<p>{escape_xml(item.content_text)}</p>"
    raise ContentFallbackError(f"No content for {item.url or item.title or 'untitled article'}")


def build_chapter(item: ArticleItem, index: int) -> str:
    """Render ``item`` as chapter number ``index`` (1-based)."""
    title_text = escape_xml(item.title or f"Chapter {index}")
    title_markup = f'<a href="{escape_xml(item.url)}">{title_text}</a>' if item.url else title_text

    # Taglined items (e.g. encyclopedia entries) carry no byline or dates
    if item.tagline:
        header_lines = [f'<p class="tagline">{escape_xml(item.tagline)}</p>']
    else:
        header_lines = build_meta_lines(item)
    header = "\n      ".join(header_lines)

    try:
        body = build_body(item)
    except ContentFallbackError as e:
        # An empty article still yields a valid chapter
        logger.warning(f"Chapter {index}: {e}, using placeholder")
        body = NO_CONTENT_MARKUP

    return f"""<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml" lang="en">
  <head>
    <title>{title_text}</title>
    <link rel="stylesheet" type="text/css" href="../styles.css" />
  </head>
  <body>
    <article>
      <h1>{title_markup}</h1>
      {header}
      {body}
    </article>
  </body>
</html>"""

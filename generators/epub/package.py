"""
EPUB package documents: container.xml, content.opf, nav.xhtml, toc.ncx,
the stylesheet and the cover page.
"""

from typing import Dict, List, Sequence

from .models import Chapter, ImageAsset, PackageMetadata
from .text import escape_xml


COVER_IMAGE_ID = "cover"
COVER_IMAGE_HREF = "cover.jpg"
COVER_PAGE_ID = "cover-page"
COVER_PAGE_HREF = "cover.xhtml"
NAV_HREF = "nav.xhtml"
NCX_HREF = "toc.ncx"
STYLES_HREF = "styles.css"
OPF_PATH = "OEBPS/content.opf"


def build_container() -> str:
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{OPF_PATH}" media-type="application/oebps-package+xml" />
  </rootfiles>
</container>"""


def build_styles() -> str:
    return """body {
  font-family: "Georgia", "Times New Roman", serif;
  color: #1b1b1b;
  line-height: 1.6;
  margin: 8%;
}

h1 {
  font-size: 1.8em;
  margin-bottom: 0.4em;
}

h1 a {
  color: inherit;
  text-decoration: none;
}

.byline {
  font-style: italic;
  color: #555;
  margin-bottom: 1.2em;
}

.tagline {
  font-size: 0.95em;
  color: #555;
  margin-bottom: 1.1em;
}

.meta {
  font-size: 0.95em;
  color: #555;
  margin-bottom: 0.9em;
}

.source {
  margin-top: 1.6em;
  font-size: 0.9em;
}

img {
  max-width: 100%;
  height: auto;
}

figure {
  margin: 1.2em 0;
}

figcaption {
  font-size: 0.9em;
  color: #555;
}

blockquote {
  margin: 1.2em 0;
  padding-left: 1em;
  border-left: 3px solid #d0c8bd;
}

pre {
  background: #f5f1ea;
  padding: 0.8em;
  border-radius: 6px;
  overflow-x: auto;
  white-space: pre-wrap;
}"""


def build_opf(metadata: PackageMetadata, chapters: Sequence[Chapter],
              assets: Sequence[ImageAsset] = ()) -> str:
    """Build the package document.

    The spine lists the cover page first and then every chapter in the order
    given; that order is the reading order of the exported queue.
    """
    manifest_items: List[str] = [
        f'<item id="{COVER_IMAGE_ID}" href="{COVER_IMAGE_HREF}" media-type="image/jpeg" properties="cover-image"/>',
        f'<item id="{COVER_PAGE_ID}" href="{COVER_PAGE_HREF}" media-type="application/xhtml+xml"/>',
        f'<item id="nav" href="{NAV_HREF}" media-type="application/xhtml+xml" properties="nav"/>',
        f'<item id="toc" href="{NCX_HREF}" media-type="application/x-dtbncx+xml"/>',
        f'<item id="css" href="{STYLES_HREF}" media-type="text/css"/>',
    ]
    for asset in assets:
        manifest_items.append(
            f'<item id="{escape_xml(asset.id)}" href="{escape_xml(asset.href)}" '
            f'media-type="{escape_xml(asset.media_type)}"/>'
        )
    for chapter in chapters:
        manifest_items.append(
            f'<item id="{escape_xml(chapter.id)}" href="{escape_xml(chapter.href)}" '
            f'media-type="application/xhtml+xml"/>'
        )

    spine_items = [f'<itemref idref="{COVER_PAGE_ID}"/>']
    spine_items.extend(f'<itemref idref="{escape_xml(chapter.id)}"/>' for chapter in chapters)

    manifest = "\n    ".join(manifest_items)
    spine = "\n    ".join(spine_items)

    return f"""<?xml version="1.0" encoding="UTF-8"?>
<package version="3.0" xmlns="http://www.idpf.org/2007/opf" unique-identifier="bookid">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">
    <dc:identifier id="bookid">{escape_xml(metadata.book_id)}</dc:identifier>
    <dc:title>{escape_xml(metadata.title)}</dc:title>
    <dc:creator>{escape_xml(metadata.creator)}</dc:creator>
    <dc:date>{escape_xml(metadata.export_date)}</dc:date>
    <dc:language>en</dc:language>
    <meta name="cover" content="{COVER_IMAGE_ID}"/>
    <meta property="dcterms:modified">{escape_xml(metadata.modified)}</meta>
  </metadata>
  <manifest>
    {manifest}
  </manifest>
  <spine toc="toc">
    {spine}
  </spine>
</package>"""


def build_nav(title: str, chapters: Sequence[Chapter]) -> str:
    items = "\n        ".join(
        f'<li><a href="{escape_xml(chapter.href)}">{escape_xml(chapter.title)}</a></li>'
        for chapter in chapters
    )
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops" lang="en">
  <head>
    <title>{escape_xml(title)}</title>
    <link rel="stylesheet" type="text/css" href="{STYLES_HREF}" />
  </head>
  <body>
    <nav epub:type="toc" id="toc">
      <h1>{escape_xml(title)}</h1>
      <ol>
        {items}
      </ol>
    </nav>
  </body>
</html>"""


def build_ncx(title: str, book_id: str, chapters: Sequence[Chapter]) -> str:
    nav_points = "\n      ".join(
        f"""<navPoint id="navPoint-{index}" playOrder="{index}">
        <navLabel><text>{escape_xml(chapter.title)}</text></navLabel>
        <content src="{escape_xml(chapter.href)}"/>
      </navPoint>"""
        for index, chapter in enumerate(chapters, 1)
    )
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">
  <head>
    <meta name="dtb:uid" content="{escape_xml(book_id)}"/>
    <meta name="dtb:depth" content="1"/>
    <meta name="dtb:totalPageCount" content="0"/>
    <meta name="dtb:maxPageNumber" content="0"/>
  </head>
  <docTitle><text>{escape_xml(title)}</text></docTitle>
  <navMap>
      {nav_points}
  </navMap>
</ncx>"""


def build_cover_page(title: str) -> str:
    safe_title = escape_xml(title or "To Be Read")
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml" lang="en">
  <head>
    <title>{safe_title}</title>
    <style>
      html, body {{
        margin: 0;
        padding: 0;
        height: 100%;
      }}
      body {{
        display: flex;
        align-items: center;
        justify-content: center;
        background: #f7f4ef;
      }}
      img {{
        max-width: 100%;
        max-height: 100%;
      }}
    </style>
  </head>
  <body>
    <img src="{COVER_IMAGE_HREF}" alt="{safe_title}" />
  </body>
</html>"""


def assemble_package(metadata: PackageMetadata, chapters: Sequence[Chapter],
                     assets: Sequence[ImageAsset] = ()) -> Dict[str, str]:
    """Return the package documents keyed by their path inside the archive."""
    return {
        "META-INF/container.xml": build_container(),
        f"OEBPS/{STYLES_HREF}": build_styles(),
        OPF_PATH: build_opf(metadata, chapters, assets),
        f"OEBPS/{NAV_HREF}": build_nav(metadata.title, chapters),
        f"OEBPS/{NCX_HREF}": build_ncx(metadata.title, metadata.book_id, chapters),
    }

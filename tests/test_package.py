"""
Unit tests for the EPUB package documents
"""
import xml.etree.ElementTree as ET

import pytest

from generators.epub.models import Chapter, ImageAsset, PackageMetadata
from generators.epub.package import (
    assemble_package,
    build_container,
    build_cover_page,
    build_nav,
    build_ncx,
    build_opf,
    build_styles,
)

OPF_NS = {'opf': 'http://www.idpf.org/2007/opf', 'dc': 'http://purl.org/dc/elements/1.1/'}


@pytest.fixture
def metadata():
    return PackageMetadata(
        book_id='urn:uuid:00000000-0000-4000-8000-000000000000',
        title='Reading <List> & More',
        creator='Tsundoku',
        export_date='2024-05-01',
        modified='2024-05-01T00:00:00Z',
    )


@pytest.fixture
def chapters():
    return [
        Chapter(id='chap-1', title='One', href='chapters/chap-1.xhtml', content=''),
        Chapter(id='chap-2', title='Two & Two', href='chapters/chap-2.xhtml', content=''),
    ]


class TestPackageDocuments:
    """Test the generated XML documents"""

    def test_container_points_at_opf(self):
        root = ET.fromstring(build_container())
        rootfile = root.find('.//{urn:oasis:names:tc:opendocument:xmlns:container}rootfile')

        assert rootfile.get('full-path') == 'OEBPS/content.opf'
        assert rootfile.get('media-type') == 'application/oebps-package+xml'

    def test_opf_metadata(self, metadata, chapters):
        root = ET.fromstring(build_opf(metadata, chapters))

        assert root.get('version') == '3.0'
        assert root.find('.//dc:identifier', OPF_NS).text == metadata.book_id
        assert root.find('.//dc:title', OPF_NS).text == 'Reading <List> & More'
        assert root.find('.//dc:date', OPF_NS).text == '2024-05-01'
        assert root.find('.//dc:language', OPF_NS).text == 'en'
        modified = [m for m in root.iterfind('.//opf:meta', OPF_NS) if m.get('property') == 'dcterms:modified']
        assert modified[0].text == '2024-05-01T00:00:00Z'

    def test_spine_starts_with_cover_page(self, metadata, chapters):
        root = ET.fromstring(build_opf(metadata, chapters))
        spine = root.find('opf:spine', OPF_NS)

        assert spine.get('toc') == 'toc'
        assert [ref.get('idref') for ref in spine] == ['cover-page', 'chap-1', 'chap-2']

    def test_manifest_lists_assets_and_chapters(self, metadata, chapters):
        assets = [ImageAsset(id='img-1', href='images/img-1.png', media_type='image/png', data=b'')]
        root = ET.fromstring(build_opf(metadata, chapters, assets))
        items = {item.get('id'): item for item in root.find('opf:manifest', OPF_NS)}

        assert items['cover'].get('properties') == 'cover-image'
        assert items['nav'].get('properties') == 'nav'
        assert items['toc'].get('media-type') == 'application/x-dtbncx+xml'
        assert items['img-1'].get('href') == 'images/img-1.png'
        assert items['img-1'].get('media-type') == 'image/png'
        assert items['chap-2'].get('href') == 'chapters/chap-2.xhtml'

    def test_nav_lists_chapters_in_order(self, chapters):
        root = ET.fromstring(build_nav('Queue', chapters))
        links = root.findall('.//{http://www.w3.org/1999/xhtml}a')

        assert [a.get('href') for a in links] == ['chapters/chap-1.xhtml', 'chapters/chap-2.xhtml']
        assert links[1].text == 'Two & Two'

    def test_ncx_play_order(self, chapters):
        root = ET.fromstring(build_ncx('Queue', 'urn:uuid:x', chapters))
        ns = {'ncx': 'http://www.daisy.org/z3986/2005/ncx/'}
        points = root.findall('.//ncx:navPoint', ns)

        assert [p.get('playOrder') for p in points] == ['1', '2']
        assert points[0].find('ncx:content', ns).get('src') == 'chapters/chap-1.xhtml'
        uid = [m for m in root.iterfind('.//ncx:meta', ns) if m.get('name') == 'dtb:uid']
        assert uid[0].get('content') == 'urn:uuid:x'

    def test_empty_chapter_list_still_parses(self, metadata):
        ET.fromstring(build_nav('Queue', []))
        ET.fromstring(build_ncx('Queue', 'id', []))
        root = ET.fromstring(build_opf(metadata, []))
        assert [ref.get('idref') for ref in root.find('opf:spine', OPF_NS)] == ['cover-page']

    def test_cover_page(self):
        root = ET.fromstring(build_cover_page('A "quoted" title'))
        img = root.find('.//{http://www.w3.org/1999/xhtml}img')

        assert img.get('src') == 'cover.jpg'
        assert img.get('alt') == 'A "quoted" title'

    def test_styles_constrain_images(self):
        assert 'max-width: 100%' in build_styles()

    def test_assemble_package_paths(self, metadata, chapters):
        documents = assemble_package(metadata, chapters)

        assert set(documents) == {
            'META-INF/container.xml',
            'OEBPS/styles.css',
            'OEBPS/content.opf',
            'OEBPS/nav.xhtml',
            'OEBPS/toc.ncx',
        }

"""
Tests for the queue2epub command line interface
"""
import json
import zipfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from generators.epub.fetcher import FetchResponse
from src.cli import main

from conftest import PNG_BYTES


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def workspace(runner, sample_articles):
    """Isolated working directory with a store file and a quiet config"""
    with runner.isolated_filesystem():
        Path('store.json').write_text(json.dumps(sample_articles), encoding='utf-8')
        Path('config.yaml').write_text(
            "logging:\n  log_to_file: false\n  level: WARNING\n", encoding='utf-8')
        yield Path.cwd()


class TestExportCommand:
    """Test the export command"""

    def test_export_default_name(self, runner, workspace):
        result = runner.invoke(main, ['export', 'store.json', '--no-images', '--date', '2024-05-01', '--seed', '3'])

        assert result.exit_code == 0, result.output
        output = workspace / 'output' / 'to-be-read-2024-05-01.epub'
        assert output.exists()
        assert str(output.name) in result.output
        archive = zipfile.ZipFile(output)
        assert archive.testzip() is None
        assert archive.namelist()[0] == 'mimetype'

    def test_export_with_title_and_output(self, runner, workspace):
        result = runner.invoke(main, ['export', 'store.json', '--no-images', '--title', 'Weekend',
                                      '--creator', 'Reader', '--output', 'book.epub'])

        assert result.exit_code == 0, result.output
        opf = zipfile.ZipFile(workspace / 'book.epub').read('OEBPS/content.opf').decode('utf-8')
        assert '<dc:title>Weekend</dc:title>' in opf
        assert '<dc:creator>Reader</dc:creator>' in opf

    def test_export_embeds_images_with_configured_fetcher(self, runner, workspace):
        fetcher = MagicMock(side_effect=lambda url: FetchResponse(200, {'Content-Type': 'image/png'}, PNG_BYTES))
        with patch('generators.epub.epub_generator.ImageFetcher', return_value=fetcher) as fetcher_cls:
            result = runner.invoke(main, ['export', 'store.json', '--output', 'book.epub'])

        assert result.exit_code == 0, result.output
        fetcher_cls.assert_called_once()
        fetcher.close.assert_called_once()
        names = zipfile.ZipFile(workspace / 'book.epub').namelist()
        assert 'OEBPS/images/img-1.png' in names

    def test_export_empty_queue(self, runner, workspace):
        result = runner.invoke(main, ['export', 'store.json', '--queue', 'nothing-here'])

        assert result.exit_code == 1
        assert 'empty' in result.output

    def test_export_clear(self, runner, workspace):
        result = runner.invoke(main, ['export', 'store.json', '--no-images', '--output', 'book.epub', '--clear'])

        assert result.exit_code == 0, result.output
        assert 'Removed 2 articles' in result.output
        stored = json.loads((workspace / 'store.json').read_text(encoding='utf-8'))
        assert stored == {'items': []}

    def test_export_missing_store(self, runner, workspace):
        result = runner.invoke(main, ['export', 'absent.json'])

        assert result.exit_code == 2


class TestListCommand:
    """Test the list command"""

    def test_list_in_order(self, runner, workspace):
        result = runner.invoke(main, ['list', 'store.json'])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert '2 articles' in lines[0]
        assert lines[1].strip() == '1. The First Article (Example)'
        assert lines[2].strip().startswith('2. Second & Last')

    def test_list_empty_queue(self, runner, workspace):
        result = runner.invoke(main, ['list', 'store.json', '--queue', 'other'])

        assert result.exit_code == 0
        assert 'No saved articles' in result.output


class TestInlineCommand:
    """Test the inline command"""

    def test_inline_to_file(self, runner, workspace):
        Path('page.html').write_text('<p>Hi</p><img src="pic.png">', encoding='utf-8')
        fetcher = MagicMock(side_effect=lambda url: FetchResponse(200, {'Content-Type': 'image/png'}, PNG_BYTES))

        with patch('src.cli.ImageFetcher', return_value=fetcher):
            result = runner.invoke(main, ['inline', 'page.html', 'https://example.com/post/', '-o', 'out.html'])

        assert result.exit_code == 0, result.output
        fetcher.assert_called_once_with('https://example.com/post/pic.png')
        fetcher.close.assert_called_once()
        assert 'src="data:image/png;base64,' in (workspace / 'out.html').read_text(encoding='utf-8')

    def test_inline_to_stdout(self, runner, workspace):
        Path('page.html').write_text('<p>No images</p>', encoding='utf-8')

        with patch('src.cli.ImageFetcher'):
            result = runner.invoke(main, ['inline', 'page.html', 'https://example.com/'])

        assert result.exit_code == 0
        assert '<p>No images</p>' in result.output


def test_version(runner):
    result = runner.invoke(main, ['--version'])

    assert result.exit_code == 0
    assert '1.0.0' in result.output

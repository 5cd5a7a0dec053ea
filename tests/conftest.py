"""
Test configuration and shared fixtures for queue2epub tests
"""
import json
import logging
import os
import shutil
import sys
import tempfile
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from generators.epub.fetcher import FetchResponse

PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 64
JPEG_BYTES = b'\xff\xd8\xff\xe0' + b'\x00' * 64


class FakeFetch:
    """In-memory fetch callable that records every requested URL"""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def __call__(self, url):
        self.calls.append(url)
        return self.responses.get(url, FetchResponse(status=404))

    def add_image(self, url, content=PNG_BYTES, content_type='image/png'):
        headers = {'Content-Type': content_type} if content_type else {}
        self.responses[url] = FetchResponse(status=200, headers=headers, content=content)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests"""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def fake_fetch():
    """Fetch callable serving two known images, 404 for anything else"""
    fetch = FakeFetch()
    fetch.add_image('https://example.com/images/photo.png')
    fetch.add_image('https://cdn.example.com/hero.jpg', content=JPEG_BYTES, content_type='image/jpeg')
    return fetch


@pytest.fixture
def sample_articles():
    """Two saved articles, the first with a relative image"""
    return [
        {
            'id': 'item-1',
            'url': 'https://example.com/articles/one',
            'title': 'The First Article',
            'byline': 'by Jane Doe',
            'site': 'Example',
            'created_at': '2024-04-30T08:00:00Z',
            'published_at': '2024-04-29T10:15:00Z',
            'content_html': '<p>Opening paragraph.</p><img src="/images/photo.png" alt="Photo">',
            'content_text': 'Opening paragraph.',
            'queue_id': 'default',
            'order': 1,
        },
        {
            'id': 'item-2',
            'url': 'https://example.org/two',
            'title': 'Second & Last',
            'created_at': '2024-04-30T09:00:00Z',
            'content_html': '',
            'content_text': 'Plain text only <no markup>.',
            'queue_id': 'default',
            'order': 2,
        },
    ]


@pytest.fixture
def sample_config(temp_dir):
    """Default configuration for tests"""
    return {
        'epub': {
            'title': 'To Be Read',
            'creator': 'Tsundoku',
            'embed_images': True,
            'cover_seed': 42,
        },
        'http': {
            'user_agent': 'TestBot/1.0',
            'max_retries': 0,
            'retry_delay': 0,
            'timeout': 5,
            'max_image_size': 1,
        },
        'logging': {
            'level': 'INFO',
            'log_to_file': False,
        },
        'directories': {
            'output_dir': str(temp_dir / 'output'),
            'logs_dir': str(temp_dir / 'logs'),
        },
    }


@pytest.fixture
def store_file(temp_dir, sample_articles):
    """JSON article store holding the sample articles"""
    path = temp_dir / 'store.json'
    path.write_text(json.dumps({'items': sample_articles}), encoding='utf-8')
    return path


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo handler changes made by setup_logging"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)

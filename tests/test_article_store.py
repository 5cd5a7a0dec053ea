"""
Unit tests for ArticleStore functionality
"""
import json

import pytest

from src.article_store import ArticleStore, DEFAULT_QUEUE_ID, get_order_value


class TestOrderValue:
    """Test the reading order key"""

    def test_explicit_order(self):
        assert get_order_value({'order': 3, 'created_at': '2024-01-01T00:00:00Z'}) == 3

    def test_created_at_fallback(self):
        assert get_order_value({'created_at': '1970-01-01T00:00:01Z'}) == 1000

    def test_unparseable(self):
        assert get_order_value({'order': 'first', 'created_at': 'yesterday'}) == 0
        assert get_order_value({}) == 0


class TestArticleStore:
    """Test ArticleStore functionality"""

    def _write(self, path, data):
        path.write_text(json.dumps(data), encoding='utf-8')
        return ArticleStore(str(path))

    def test_missing_file_is_empty(self, temp_dir):
        store = ArticleStore(str(temp_dir / 'none.json'))

        assert store.list_items() == []
        assert store.count_items() == 0

    def test_plain_list_format(self, temp_dir):
        store = self._write(temp_dir / 's.json', [{'id': 'a', 'title': 'A'}])

        assert [item['id'] for item in store.list_items()] == ['a']

    def test_items_object_format(self, store_file):
        store = ArticleStore(str(store_file))

        assert store.count_items() == 2

    def test_unknown_format(self, temp_dir):
        with pytest.raises(ValueError):
            self._write(temp_dir / 's.json', {'items': 'nope'})

    def test_missing_queue_is_default(self, temp_dir):
        store = self._write(temp_dir / 's.json', [{'id': 'a'}, {'id': 'b', 'queue_id': ''}])

        assert store.count_items(DEFAULT_QUEUE_ID) == 2

    def test_list_items_sorted(self, temp_dir):
        store = self._write(temp_dir / 's.json', [
            {'id': 'late', 'created_at': '2024-03-01T00:00:00Z'},
            {'id': 'early', 'created_at': '2024-01-01T00:00:00Z'},
            {'id': 'middle', 'created_at': '2024-02-01T00:00:00Z'},
        ])

        assert [item['id'] for item in store.list_items()] == ['early', 'middle', 'late']

    def test_list_items_by_queue(self, temp_dir):
        store = self._write(temp_dir / 's.json', [
            {'id': 'a', 'queue_id': 'work', 'order': 2},
            {'id': 'b', 'order': 1},
            {'id': 'c', 'queue_id': 'work', 'order': 1},
        ])

        assert [item['id'] for item in store.list_items('work')] == ['c', 'a']
        assert [item['id'] for item in store.list_items()] == ['b', 'c', 'a']
        assert store.count_items('work') == 2

    def test_get_items_by_ids(self, store_file):
        store = ArticleStore(str(store_file))

        items = store.get_items_by_ids(['item-2', 'missing', 'item-1'])
        assert [item['id'] for item in items] == ['item-2', 'item-1']

    def test_add_item_fills_fields_and_persists(self, temp_dir):
        path = temp_dir / 'store.json'
        store = ArticleStore(str(path))

        item = store.add_item({'title': 'New', 'content_text': 'three little words'})

        assert item['id']
        assert item['created_at'].endswith('Z')
        assert item['queue_id'] == DEFAULT_QUEUE_ID
        assert item['word_count'] == 3
        assert item['excerpt'] == 'three little words'

        reloaded = ArticleStore(str(path))
        assert reloaded.get_item(item['id'])['title'] == 'New'

    def test_add_item_replaces_same_id(self, store_file):
        store = ArticleStore(str(store_file))
        store.add_item({'id': 'item-1', 'title': 'Updated'})

        assert store.count_items() == 2
        assert store.get_item('item-1')['title'] == 'Updated'

    def test_delete_items_by_queue(self, temp_dir):
        path = temp_dir / 's.json'
        store = self._write(path, [{'id': 'a'}, {'id': 'b', 'queue_id': 'other'}])

        assert store.delete_items_by_queue(DEFAULT_QUEUE_ID) == 1
        assert store.delete_items_by_queue('missing') == 0
        assert [item['id'] for item in ArticleStore(str(path)).list_items()] == ['b']

    def test_delete_item(self, store_file):
        store = ArticleStore(str(store_file))

        assert store.delete_item('item-1')
        assert not store.delete_item('item-1')
        assert store.count_items() == 1

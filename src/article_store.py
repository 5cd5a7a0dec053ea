#!/usr/bin/env python3
"""
JSON-file Article Store for queue2epub

Holds saved articles grouped into queues. The file is either a plain list
of article records or an object with an ``items`` list; it is always written
back in the object form.
"""

import json
import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from generators.epub.text import make_excerpt, parse_datetime, word_count

DEFAULT_QUEUE_ID = "default"


def get_order_value(item: Dict[str, Any]) -> float:
    """Sort key: explicit ``order``, else ``created_at`` in epoch ms, else 0."""
    order = item.get('order')
    if isinstance(order, (int, float)) and not isinstance(order, bool) and order == order:
        return float(order)
    created = parse_datetime(item.get('created_at') or '')
    if created is None:
        return 0.0
    return created.timestamp() * 1000


class ArticleStore:
    """Manages queued articles stored in a single JSON file."""

    def __init__(self, store_path: str):
        self.store_path = store_path
        self.logger = logging.getLogger(__name__)
        self.items: List[Dict[str, Any]] = []
        self._load()

    def _load(self) -> None:
        if not os.path.exists(self.store_path):
            self.logger.debug(f"Store {self.store_path} does not exist yet, starting empty")
            return

        with open(self.store_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if isinstance(data, dict):
            data = data.get('items', [])
        if not isinstance(data, list):
            raise ValueError(f"Unrecognised store format in {self.store_path}")

        self.items = [self._normalize(item) for item in data if isinstance(item, dict)]
        self.logger.debug(f"Loaded {len(self.items)} items from {self.store_path}")

    def _save(self) -> None:
        parent = os.path.dirname(self.store_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(self.store_path, 'w', encoding='utf-8') as f:
            json.dump({'items': self.items}, f, indent=2, ensure_ascii=False)

    @staticmethod
    def _normalize(item: Dict[str, Any]) -> Dict[str, Any]:
        item = dict(item)
        if not item.get('queue_id'):
            item['queue_id'] = DEFAULT_QUEUE_ID
        return item

    def list_items(self, queue_id: str = "") -> List[Dict[str, Any]]:
        """Items of ``queue_id`` (all items when empty) in reading order."""
        items = [item for item in self.items if not queue_id or item['queue_id'] == queue_id]
        return sorted(items, key=get_order_value)

    def get_items_by_ids(self, ids: List[str]) -> List[Dict[str, Any]]:
        by_id = {item.get('id'): item for item in self.items}
        return [by_id[item_id] for item_id in ids if item_id in by_id]

    def get_item(self, item_id: str) -> Optional[Dict[str, Any]]:
        for item in self.items:
            if item.get('id') == item_id:
                return item
        return None

    def add_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """Insert or replace an item by id and persist the store.

        Missing ``id``, ``created_at``, ``excerpt`` and ``word_count`` are
        filled in the way a freshly saved article gets them.
        """
        item = self._normalize(item)
        item.setdefault('id', str(uuid.uuid4()))
        if not item.get('created_at'):
            item['created_at'] = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
        text = item.get('content_text') or ''
        if not item.get('excerpt') and text:
            item['excerpt'] = make_excerpt(text)
        if not item.get('word_count'):
            item['word_count'] = word_count(text)

        self.items = [existing for existing in self.items if existing.get('id') != item['id']]
        self.items.append(item)
        self._save()
        return item

    def delete_item(self, item_id: str) -> bool:
        before = len(self.items)
        self.items = [item for item in self.items if item.get('id') != item_id]
        if len(self.items) == before:
            return False
        self._save()
        return True

    def delete_items_by_queue(self, queue_id: str) -> int:
        """Remove every item in ``queue_id``; returns how many were removed."""
        before = len(self.items)
        self.items = [item for item in self.items if item['queue_id'] != queue_id]
        removed = before - len(self.items)
        if removed:
            self._save()
            self.logger.info(f"Removed {removed} items from queue '{queue_id}'")
        return removed

    def count_items(self, queue_id: str = "") -> int:
        if not queue_id:
            return len(self.items)
        return sum(1 for item in self.items if item['queue_id'] == queue_id)

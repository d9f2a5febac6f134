from __future__ import annotations

import threading
from collections.abc import Iterable

import structlog

from menu_api.core.errors import MenuItemNotFoundError
from menu_api.menu.base import MenuItem, MenuItemPayload, MenuRepository
from menu_api.menu.seed import SEED_MENU_ITEMS

logger = structlog.get_logger(__name__)


class MenuStore(MenuRepository):
    """In-memory menu collection kept in insertion order.

    Ids come from a counter that only moves forward, so an id freed by
    delete_item is never handed out again. Every operation holds one lock
    for its whole duration.
    """

    def __init__(self, items: Iterable[MenuItem] = ()) -> None:
        self._lock = threading.Lock()
        self._items: list[MenuItem] = [item.model_copy(deep=True) for item in items]
        ids = [item.id for item in self._items]
        if len(ids) != len(set(ids)):
            raise ValueError("Menu item ids must be unique")
        self._next_id = max(ids, default=0) + 1

    @classmethod
    def seeded(cls) -> MenuStore:
        return cls(SEED_MENU_ITEMS)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    @property
    def next_id(self) -> int:
        return self._next_id

    def list_items(self) -> list[MenuItem]:
        with self._lock:
            return [item.model_copy(deep=True) for item in self._items]

    def get_item(self, item_id: int) -> MenuItem:
        with self._lock:
            return self._items[self._index_of(item_id)].model_copy(deep=True)

    def create_item(self, payload: MenuItemPayload) -> MenuItem:
        fields = payload.model_dump()
        if fields["available"] is None:
            fields["available"] = True
        with self._lock:
            item = MenuItem(id=self._next_id, **fields)
            self._next_id += 1
            self._items.append(item)
            logger.info("menu_item_created", item_id=item.id, name=item.name)
            return item.model_copy(deep=True)

    def replace_item(self, item_id: int, payload: MenuItemPayload) -> MenuItem:
        with self._lock:
            index = self._index_of(item_id)
            item = MenuItem(id=self._items[index].id, **payload.model_dump())
            self._items[index] = item
            logger.info("menu_item_replaced", item_id=item.id)
            return item.model_copy(deep=True)

    def delete_item(self, item_id: int) -> MenuItem:
        with self._lock:
            item = self._items.pop(self._index_of(item_id))
            logger.info("menu_item_deleted", item_id=item.id)
            return item

    def _index_of(self, item_id: int) -> int:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return index
        raise MenuItemNotFoundError(item_id)

from menu_api.menu.base import MenuCategory, MenuItem, MenuItemPayload, MenuRepository
from menu_api.menu.store import MenuStore
from menu_api.menu.validation import validate_menu_item

__all__ = [
    "MenuCategory",
    "MenuItem",
    "MenuItemPayload",
    "MenuRepository",
    "MenuStore",
    "validate_menu_item",
]

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from menu_api.menu.base import FieldViolation


class MenuValidationError(ValueError):
    def __init__(self, violations: list[FieldViolation]) -> None:
        super().__init__(f"{len(violations)} invalid field(s)")
        self.violations = violations


class MenuItemNotFoundError(LookupError):
    def __init__(self, item_id: int | str) -> None:
        super().__init__(f"Menu item {item_id} not found")
        self.item_id = item_id

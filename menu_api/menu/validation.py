from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from menu_api.core.errors import MenuValidationError
from menu_api.menu.base import FieldViolation, MenuItemPayload

_FIELD_MESSAGES = {
    "name": "Name must be a string",
    "description": "Description must be a string",
    "price": "Price must be greater than 0",
    "category": "Category must be appetizer, entree, dessert, or beverage",
    "ingredients": "Ingredients must be an array with at least one item",
    "available": "Available must be true or false",
}

_RULE_MESSAGES = {
    ("name", "string_too_short"): "Name must be at least 3 characters",
    ("description", "string_too_short"): "Description must be at least 10 characters",
}

INGREDIENT_TYPE_MESSAGE = "Ingredients must contain only strings"
INVALID_JSON_MESSAGE = "Request body must be valid JSON"


def _message_for(loc: tuple[Any, ...], error_type: str) -> str:
    field = str(loc[0])
    if field == "ingredients" and len(loc) > 1:
        return INGREDIENT_TYPE_MESSAGE
    return _RULE_MESSAGES.get((field, error_type), _FIELD_MESSAGES.get(field, "Invalid value"))


def collect_violations(exc: ValidationError, data: dict[str, Any]) -> list[FieldViolation]:
    violations: list[FieldViolation] = []
    seen: set[tuple[str, str]] = set()
    for error in exc.errors():
        loc = tuple(error["loc"]) or ("body",)
        field = str(loc[0])
        msg = _message_for(loc, error["type"])
        if (field, msg) in seen:
            continue
        seen.add((field, msg))
        violations.append(FieldViolation(value=data.get(field), msg=msg, path=field))
    return violations


def validate_menu_item(raw: Any) -> MenuItemPayload:
    """Validate a parsed request body into a typed payload.

    Anything other than a JSON object is validated as an empty object, so
    every required field is reported. Raises MenuValidationError carrying
    every violation, in field order.
    """
    data = raw if isinstance(raw, dict) else {}
    try:
        return MenuItemPayload.model_validate(data)
    except ValidationError as exc:
        raise MenuValidationError(collect_violations(exc, data)) from exc


def invalid_json_error() -> MenuValidationError:
    return MenuValidationError([FieldViolation(msg=INVALID_JSON_MESSAGE, path="body")])

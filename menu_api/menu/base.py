from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictStr


class MenuCategory(str, Enum):
    appetizer = "appetizer"
    entree = "entree"
    dessert = "dessert"
    beverage = "beverage"


class MenuItemPayload(BaseModel):
    """Client-submitted menu item; `id` and unknown keys are dropped."""

    model_config = ConfigDict(extra="ignore")

    name: Annotated[StrictStr, Field(min_length=3)]
    description: Annotated[StrictStr, Field(min_length=10)]
    price: Annotated[StrictFloat, Field(gt=0, allow_inf_nan=False)]
    category: MenuCategory
    ingredients: Annotated[list[StrictStr], Field(min_length=1)]
    available: StrictBool | None = None


class MenuItem(BaseModel):
    id: int
    name: str
    description: str
    price: float
    category: MenuCategory
    ingredients: list[str]
    # None only after a replace that omitted it
    available: bool | None = None


class FieldViolation(BaseModel):
    type: str = "field"
    value: Any = None
    msg: str
    path: str
    location: str = "body"


class MenuRepository(ABC):
    @abstractmethod
    def list_items(self) -> list[MenuItem]:
        raise NotImplementedError

    @abstractmethod
    def get_item(self, item_id: int) -> MenuItem:
        raise NotImplementedError

    @abstractmethod
    def create_item(self, payload: MenuItemPayload) -> MenuItem:
        raise NotImplementedError

    @abstractmethod
    def replace_item(self, item_id: int, payload: MenuItemPayload) -> MenuItem:
        raise NotImplementedError

    @abstractmethod
    def delete_item(self, item_id: int) -> MenuItem:
        raise NotImplementedError

from __future__ import annotations

from menu_api.menu.base import MenuCategory, MenuItem

SEED_MENU_ITEMS: tuple[MenuItem, ...] = (
    MenuItem(
        id=1,
        name="Classic Burger",
        description="Beef patty with lettuce, tomato, and cheese on a sesame seed bun",
        price=12.99,
        category=MenuCategory.entree,
        ingredients=["beef", "lettuce", "tomato", "cheese", "bun"],
        available=True,
    ),
    MenuItem(
        id=2,
        name="Chicken Caesar Salad",
        description="Grilled chicken breast over romaine lettuce with parmesan and croutons",
        price=11.50,
        category=MenuCategory.entree,
        ingredients=["chicken", "romaine lettuce", "parmesan cheese", "croutons", "caesar dressing"],
        available=True,
    ),
    MenuItem(
        id=3,
        name="Mozzarella Sticks",
        description="Crispy breaded mozzarella served with marinara sauce",
        price=8.99,
        category=MenuCategory.appetizer,
        ingredients=["mozzarella cheese", "breadcrumbs", "marinara sauce"],
        available=True,
    ),
    MenuItem(
        id=4,
        name="Chocolate Lava Cake",
        description="Warm chocolate cake with molten center, served with vanilla ice cream",
        price=7.99,
        category=MenuCategory.dessert,
        ingredients=["chocolate", "flour", "eggs", "butter", "vanilla ice cream"],
        available=True,
    ),
    MenuItem(
        id=5,
        name="Fresh Lemonade",
        description="House-made lemonade with fresh lemons and mint",
        price=3.99,
        category=MenuCategory.beverage,
        ingredients=["lemons", "sugar", "water", "mint"],
        available=True,
    ),
    MenuItem(
        id=6,
        name="Fish and Chips",
        description="Beer-battered cod with seasoned fries and coleslaw",
        price=14.99,
        category=MenuCategory.entree,
        ingredients=["cod", "beer batter", "potatoes", "coleslaw", "tartar sauce"],
        available=False,
    ),
)

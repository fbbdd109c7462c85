# Overview: Line pricing for order items; exact integer arithmetic only.

from __future__ import annotations

from typing import Callable, Iterable, NamedTuple

from .catalog_service import MenuItemNotFound, get_menu_item_price

PriceLookup = Callable[[int], int]


class PricingError(Exception):
    """Raised when a line cannot be priced."""
    pass


class LinePrice(NamedTuple):
    unit_price: int
    total_price: int


def _require_amount(value, label: str) -> int:
    # bool is an int subclass; floats would silently accumulate error
    if isinstance(value, bool) or not isinstance(value, int):
        raise PricingError(f"{label} must be an integer amount, got {value!r}")
    return value


def _modifier_price(modifier) -> int:
    if isinstance(modifier, dict):
        price = modifier.get("price", 0)
    elif hasattr(modifier, "price"):
        price = modifier.price
    else:
        price = modifier
    return _require_amount(price, "Modifier price")


def resolve_line(
    menu_item_id: int,
    quantity: int,
    options: Iterable = (),
    toppings: Iterable = (),
    *,
    price_lookup: PriceLookup,
) -> LinePrice:
    """
    unit = base(menu_item_id) + sum(options) + sum(toppings); total = unit * quantity.

    Modifiers may be ints, dicts with "price", or rows with a price attribute.
    """
    quantity = _require_amount(quantity, "Quantity")
    if quantity <= 0:
        raise PricingError("Quantity must be positive")

    base = _require_amount(price_lookup(menu_item_id), "Base price")
    unit = base
    unit += sum(_modifier_price(option) for option in options)
    unit += sum(_modifier_price(topping) for topping in toppings)
    return LinePrice(unit_price=unit, total_price=unit * quantity)


class PricingResolver:
    """resolve_line bound to one price source."""

    def __init__(self, price_lookup: PriceLookup):
        self.price_lookup = price_lookup

    def resolve_line(self, menu_item_id: int, quantity: int, options: Iterable = (), toppings: Iterable = ()) -> LinePrice:
        return resolve_line(menu_item_id, quantity, options, toppings, price_lookup=self.price_lookup)


def catalog_price_lookup(menu_item_id: int) -> int:
    """Current menu price; used when an order is placed."""
    return get_menu_item_price(menu_item_id)


def snapshot_price_lookup(base_price: int, known_menu_item_ids: set[int]) -> PriceLookup:
    """
    Price source for re-pricing an existing order item.

    Returns the base price snapshotted on the item, so a later menu price
    change never reprices it, but still refuses items whose menu entry is gone.
    """
    def _lookup(menu_item_id: int) -> int:
        if menu_item_id not in known_menu_item_ids:
            raise MenuItemNotFound(menu_item_id)
        return base_price
    return _lookup

import pytest

from closeout.services.catalog_service import MenuItemNotFound
from closeout.services.pricing_service import (
    LinePrice,
    PricingError,
    PricingResolver,
    resolve_line,
    snapshot_price_lookup,
)

PRICES = {1: 1000, 2: 1500}


def lookup(menu_item_id):
    if menu_item_id not in PRICES:
        raise MenuItemNotFound(menu_item_id)
    return PRICES[menu_item_id]


def test_plain_line():
    assert resolve_line(1, 2, price_lookup=lookup) == LinePrice(unit_price=1000, total_price=2000)


def test_modifiers_accept_rows_dicts_and_ints():
    class Row:
        price = 200

    price = resolve_line(2, 1, [{"price": 100}], [Row(), 50], price_lookup=lookup)
    assert price == LinePrice(unit_price=1850, total_price=1850)


def test_quantity_multiplies_unit_including_modifiers():
    price = PricingResolver(lookup).resolve_line(2, 3, toppings=[200])
    assert price.unit_price == 1700
    assert price.total_price == 5100


@pytest.mark.parametrize("quantity", [0, -1, 1.5, True, "2"])
def test_bad_quantity(quantity):
    with pytest.raises(PricingError):
        resolve_line(1, quantity, price_lookup=lookup)


def test_float_prices_rejected():
    with pytest.raises(PricingError):
        resolve_line(1, 1, [{"price": 0.5}], price_lookup=lookup)


def test_unknown_menu_item():
    with pytest.raises(MenuItemNotFound):
        resolve_line(99, 1, price_lookup=lookup)


def test_snapshot_lookup_ignores_current_price():
    snapshot = snapshot_price_lookup(800, {1})
    assert resolve_line(1, 2, price_lookup=snapshot).total_price == 1600


def test_snapshot_lookup_refuses_deleted_item():
    snapshot = snapshot_price_lookup(800, set())
    with pytest.raises(MenuItemNotFound):
        resolve_line(1, 1, price_lookup=snapshot)

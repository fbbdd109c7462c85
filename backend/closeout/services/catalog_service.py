# Overview: Narrow catalog access used by pricing (price lookup, guarded delete).

from __future__ import annotations

from ..extensions import db
from ..models import MenuItem, OrderItem


class MenuItemNotFound(Exception):
    """Raised when an order references a menu item that no longer exists."""
    def __init__(self, menu_item_id: int):
        super().__init__(f"Menu item {menu_item_id} not found")
        self.menu_item_id = menu_item_id


class MenuItemInUse(Exception):
    """Raised when deleting a menu item still referenced by a live order."""
    pass


def get_menu_item(menu_item_id: int) -> MenuItem:
    item = db.session.query(MenuItem).filter_by(id=menu_item_id).first()
    if not item:
        raise MenuItemNotFound(menu_item_id)
    return item


def get_menu_item_price(menu_item_id: int) -> int:
    """Current catalog price of the item."""
    return get_menu_item(menu_item_id).price


def existing_menu_item_ids(menu_item_ids) -> set[int]:
    ids = set(menu_item_ids)
    if not ids:
        return set()
    rows = db.session.query(MenuItem.id).filter(MenuItem.id.in_(ids)).all()
    return {row.id for row in rows}


def delete_menu_item(menu_item_id: int) -> None:
    """Hard delete, refused while any live order item points at the item."""
    item = get_menu_item(menu_item_id)
    referenced = db.session.query(OrderItem.id).filter_by(menu_item_id=menu_item_id).first()
    if referenced:
        raise MenuItemInUse(f"Menu item {menu_item_id} is referenced by open orders")
    db.session.delete(item)
    db.session.commit()

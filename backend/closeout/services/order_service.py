# Overview: Minimal order intake used upstream of checkout (placing orders, status, checkout requests, day listing).

from __future__ import annotations

from datetime import date

from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import (
    DiningTable,
    MenuOption,
    MenuTopping,
    Order,
    OrderItem,
    OrderItemOption,
    OrderItemTopping,
)
from ..models.orders import ORDER_STATUSES
from ..time_utils import Clock, SystemClock
from .business_hours_service import get_store_calendar
from .catalog_service import get_menu_item
from .concurrency import lock_for_update, run_with_retry
from .pricing_service import PricingResolver, catalog_price_lookup


class OrderError(Exception):
    """Raised for order operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class TableNotFound(Exception):
    """Raised when a table does not exist in the given store."""
    def __init__(self, store_id: int, table_id: int):
        super().__init__(f"Table {table_id} not found in store {store_id}")
        self.store_id = store_id
        self.table_id = table_id


def _load_modifiers(model, store_id: int, ids) -> list:
    ids = list(ids or [])
    if not ids:
        return []
    rows = db.session.query(model).filter(model.id.in_(ids), model.store_id == store_id).all()
    by_id = {row.id: row for row in rows}
    missing = [i for i in ids if i not in by_id]
    if missing:
        raise OrderError(f"Unknown {model.__tablename__} ids", details={"ids": missing})
    return [by_id[i] for i in ids]


def place_order(store_id: int, table_id: int, lines: list[dict], *, clock: Clock | None = None) -> Order:
    """
    Create an order for a table.

    Each line: {"menu_item_id", "quantity", "option_ids"?, "topping_ids"?, "notes"?}.
    Prices are taken from the catalog now and snapshotted on the rows.
    """
    clock = clock or SystemClock()
    if not lines:
        raise OrderError("An order needs at least one line")

    resolver = PricingResolver(catalog_price_lookup)

    def _op():
        table = lock_for_update(
            db.session.query(DiningTable).filter_by(id=table_id, store_id=store_id)
        ).first()
        if not table:
            raise TableNotFound(store_id, table_id)

        now = clock.utcnow()
        order = Order(store_id=store_id, table_id=table.id, status="new", created_at=now, updated_at=now)
        db.session.add(order)
        db.session.flush()

        total_items = 0
        total_amount = 0
        for line in lines:
            menu_item = get_menu_item(line["menu_item_id"])
            if menu_item.store_id != store_id:
                raise OrderError("Menu item belongs to another store", details={"menu_item_id": menu_item.id})
            options = _load_modifiers(MenuOption, store_id, line.get("option_ids"))
            toppings = _load_modifiers(MenuTopping, store_id, line.get("topping_ids"))
            quantity = line.get("quantity", 1)

            price = resolver.resolve_line(menu_item.id, quantity, options, toppings)
            item = OrderItem(
                order_id=order.id,
                menu_item_id=menu_item.id,
                name=menu_item.name,
                quantity=quantity,
                base_price=menu_item.price,
                unit_price=price.unit_price,
                total_price=price.total_price,
                notes=line.get("notes"),
                status="new",
                created_at=now,
                updated_at=now,
            )
            db.session.add(item)
            db.session.flush()

            for option in options:
                db.session.add(OrderItemOption(order_item_id=item.id, option_id=option.id, name=option.name, price=option.price))
            for topping in toppings:
                db.session.add(OrderItemTopping(order_item_id=item.id, topping_id=topping.id, name=topping.name, price=topping.price))

            total_items += quantity
            total_amount += price.total_price

        order.total_items = total_items
        order.total_amount = total_amount
        # Re-set so onupdate does not replace it with the database clock
        order.updated_at = now
        table.status = "occupied"

        db.session.commit()
        return order

    return run_with_retry(_op)


def update_order_status(order_id: int, status: str, *, clock: Clock | None = None) -> Order:
    """Move an order (and its items) to a new kitchen/floor status."""
    clock = clock or SystemClock()
    if status not in ORDER_STATUSES:
        raise OrderError(f"Invalid order status: {status}")

    order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
    if not order:
        raise OrderError("Order not found")

    now = clock.utcnow()
    order.status = status
    order.updated_at = now
    for item in order.items:
        if item.status != "cancelled":
            item.status = status
            item.updated_at = now

    db.session.commit()
    return order


def request_checkout(store_id: int, table_id: int, *, clock: Clock | None = None) -> DiningTable:
    """Customer-facing trigger: flag the table for staff to check out."""
    clock = clock or SystemClock()

    def _op():
        table = lock_for_update(
            db.session.query(DiningTable).filter_by(id=table_id, store_id=store_id)
        ).first()
        if not table:
            raise TableNotFound(store_id, table_id)
        if not table.checkout_requested:
            table.checkout_requested = True
            table.checkout_requested_at = clock.utcnow()
        db.session.commit()
        return table

    return run_with_retry(_op)


def list_checkout_requested_tables(store_id: int) -> list[DiningTable]:
    return (
        db.session.query(DiningTable)
        .filter_by(store_id=store_id, checkout_requested=True)
        .order_by(DiningTable.checkout_requested_at.asc())
        .all()
    )


def list_orders_for_date(store_id: int, day: date) -> list[dict]:
    """
    Live orders created during day's accounting period, newest first, with
    their item lines. Checked-out orders live in the archive instead.
    """
    period = get_store_calendar(store_id).period(day)
    orders = (
        db.session.query(Order)
        .options(
            selectinload(Order.table),
            selectinload(Order.items).selectinload(OrderItem.options),
            selectinload(Order.items).selectinload(OrderItem.toppings),
        )
        .filter(
            Order.store_id == store_id,
            Order.created_at >= period.start,
            Order.created_at < period.end,
        )
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )

    result = []
    for order in orders:
        data = order.to_dict()
        data["table_number"] = order.table.number
        result.append(data)
    return result

# Overview: Table checkout; archives a table's open orders into a completed sales cycle in one transaction.

"""
Checkout invariants (authoritative)

- Everything from the cycle lookup to the table reset commits together or
  not at all. Orders are never deleted unless their archive rows and the
  completed cycle are written in the same transaction.
- Checkouts of the same table serialize on the table row lock (SQLite:
  BEGIN IMMEDIATE). The loser of a race sees zero open orders and returns
  the no-op result, so a retried or duplicated checkout is harmless.
- Totals are recomputed from snapshotted prices with integer arithmetic.
  sum(ArchivedOrderItem.total_price) == SalesCycle.total_amount per cycle.
- Cancelled orders/items are archived for the record but bill nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import (
    ArchivedOrder,
    ArchivedOrderItem,
    ArchivedOrderItemOption,
    ArchivedOrderItemTopping,
    DiningTable,
    Order,
    OrderItem,
    OrderItemOption,
    OrderItemTopping,
    SalesCycle,
)
from ..time_utils import Clock, SystemClock
from .business_hours_service import get_store_calendar
from .catalog_service import existing_menu_item_ids
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry
from .cycle_service import resolve_active_cycle
from .order_service import TableNotFound
from .pricing_service import LinePrice, resolve_line, snapshot_price_lookup


class CheckoutFailed(Exception):
    """Checkout rolled back; the table and its orders are unchanged."""
    def __init__(self, store_id: int, table_id: int, cause: BaseException):
        super().__init__(f"Checkout of table {table_id} in store {store_id} failed: {cause}")
        self.store_id = store_id
        self.table_id = table_id
        self.cause = cause


@dataclass
class CheckoutResult:
    archived_orders: int
    total_amount: int
    total_items: int
    sales_cycle: Optional[SalesCycle] = None

    @classmethod
    def empty(cls) -> "CheckoutResult":
        return cls(archived_orders=0, total_amount=0, total_items=0, sales_cycle=None)

    def to_dict(self) -> dict:
        return {
            "archived_orders": self.archived_orders,
            "total_amount": self.total_amount,
            "total_items": self.total_items,
            "sales_cycle": self.sales_cycle.to_dict() if self.sales_cycle else None,
        }


def _is_billable(order: Order, item: OrderItem) -> bool:
    return order.status != "cancelled" and item.status != "cancelled"


def _load_open_orders(table: DiningTable) -> list[Order]:
    return (
        db.session.query(Order)
        .options(
            selectinload(Order.items).selectinload(OrderItem.options),
            selectinload(Order.items).selectinload(OrderItem.toppings),
        )
        .filter_by(store_id=table.store_id, table_id=table.id)
        .order_by(Order.id.asc())
        .all()
    )


def _price_orders(orders: list[Order]) -> dict[int, LinePrice]:
    """Recompute every item from its snapshot; fails on deleted menu items."""
    known_ids = existing_menu_item_ids(item.menu_item_id for order in orders for item in order.items)
    priced: dict[int, LinePrice] = {}
    for order in orders:
        for item in order.items:
            price = resolve_line(
                item.menu_item_id,
                item.quantity,
                item.options,
                item.toppings,
                price_lookup=snapshot_price_lookup(item.base_price, known_ids),
            )
            if price.total_price != item.total_price:
                current_app.logger.warning(
                    "Order item %s stored total %s differs from recomputed %s; using recomputed",
                    item.id, item.total_price, price.total_price,
                )
            priced[item.id] = price
    return priced


def _archive_order(
    order: Order,
    table: DiningTable,
    cycle: SalesCycle,
    priced: dict[int, LinePrice],
    archived_at,
) -> tuple[int, int]:
    billed = [item for item in order.items if _is_billable(order, item)]
    order_amount = sum(priced[item.id].total_price for item in billed)
    order_items = sum(item.quantity for item in billed)

    archived = ArchivedOrder(
        sales_cycle_id=cycle.id,
        original_order_id=order.id,
        store_id=order.store_id,
        table_id=table.id,
        table_number=table.number,
        status=order.status,
        total_items=order_items,
        total_amount=order_amount,
        original_created_at=order.created_at,
        archived_at=archived_at,
    )
    db.session.add(archived)
    db.session.flush()

    for item in order.items:
        price = priced[item.id]
        archived_item = ArchivedOrderItem(
            archived_order_id=archived.id,
            original_item_id=item.id,
            menu_item_id=item.menu_item_id,
            name=item.name,
            quantity=item.quantity,
            unit_price=price.unit_price,
            total_price=price.total_price if _is_billable(order, item) else 0,
            notes=item.notes,
            status=item.status,
            original_created_at=item.created_at,
            archived_at=archived_at,
        )
        db.session.add(archived_item)
        db.session.flush()

        for option in item.options:
            db.session.add(ArchivedOrderItemOption(archived_order_item_id=archived_item.id, name=option.name, price=option.price))
        for topping in item.toppings:
            db.session.add(ArchivedOrderItemTopping(archived_order_item_id=archived_item.id, name=topping.name, price=topping.price))

    return order_amount, order_items


def delete_order_graph(order_ids: Iterable[int]) -> dict:
    """
    Delete live orders and everything under them, children first.

    Explicit per-table deletes keyed by the order id set; nothing relies on
    ORM cascades. Runs inside the caller's transaction.
    """
    order_ids = list(order_ids)
    if not order_ids:
        return {"orders": 0, "items": 0, "options": 0, "toppings": 0}

    item_ids = [row.id for row in db.session.query(OrderItem.id).filter(OrderItem.order_id.in_(order_ids)).all()]
    deleted = {"options": 0, "toppings": 0, "items": 0}
    if item_ids:
        deleted["options"] = (
            db.session.query(OrderItemOption)
            .filter(OrderItemOption.order_item_id.in_(item_ids))
            .delete(synchronize_session="fetch")
        )
        deleted["toppings"] = (
            db.session.query(OrderItemTopping)
            .filter(OrderItemTopping.order_item_id.in_(item_ids))
            .delete(synchronize_session="fetch")
        )
        deleted["items"] = (
            db.session.query(OrderItem)
            .filter(OrderItem.id.in_(item_ids))
            .delete(synchronize_session="fetch")
        )
    deleted["orders"] = (
        db.session.query(Order)
        .filter(Order.id.in_(order_ids))
        .delete(synchronize_session="fetch")
    )
    return deleted


def _checkout_locked(table: DiningTable, orders: list[Order], clock: Clock) -> CheckoutResult:
    now = clock.utcnow()
    calendar = get_store_calendar(table.store_id)
    day = calendar.accounting_date(clock.now())

    cycle = resolve_active_cycle(
        table,
        day,
        calendar,
        started_at=min(order.created_at for order in orders),
    )

    priced = _price_orders(orders)

    total_amount = 0
    total_items = 0
    for order in orders:
        order_amount, order_items = _archive_order(order, table, cycle, priced, now)
        total_amount += order_amount
        total_items += order_items

    cycle.status = "completed"
    cycle.completed_at = now
    cycle.total_amount = total_amount
    cycle.total_items = total_items

    delete_order_graph([order.id for order in orders])

    table.checkout_requested = False
    table.checkout_requested_at = None
    table.status = "available"

    db.session.flush()
    return CheckoutResult(
        archived_orders=len(orders),
        total_amount=total_amount,
        total_items=total_items,
        sales_cycle=cycle,
    )


def checkout(store_id: int, table_id: int, *, clock: Clock | None = None) -> CheckoutResult:
    """
    Close out a table: archive all of its open orders into one completed
    sales cycle, delete the live orders and reset the table.

    Raises TableNotFound for an unknown table, CheckoutFailed (with .cause)
    for anything that went wrong after the table was locked.
    """
    clock = clock or SystemClock()
    attempts = current_app.config.get("CLOSEOUT_CHECKOUT_RETRY_ATTEMPTS", 3)

    def _op() -> CheckoutResult:
        begin_write_transaction()
        table = lock_for_update(
            db.session.query(DiningTable).filter_by(id=table_id, store_id=store_id)
        ).first()
        if not table:
            raise TableNotFound(store_id, table_id)

        orders = _load_open_orders(table)
        if not orders:
            # Already checked out (or never ordered): release the lock untouched
            db.session.rollback()
            return CheckoutResult.empty()

        try:
            result = _checkout_locked(table, orders, clock)
            db.session.commit()
        except (OperationalError, StaleDataError):
            raise
        except Exception as exc:
            db.session.rollback()
            raise CheckoutFailed(store_id, table_id, exc) from exc
        return result

    try:
        result = run_with_retry(_op, attempts=attempts)
    except (OperationalError, StaleDataError) as exc:
        current_app.logger.error("Checkout of table %s gave up after %s attempts", table_id, attempts)
        raise CheckoutFailed(store_id, table_id, exc) from exc
    except CheckoutFailed as exc:
        current_app.logger.error("Checkout of table %s rolled back: %r", table_id, exc.cause)
        raise

    if result.archived_orders:
        current_app.logger.info(
            "Checked out table %s in store %s: %s orders, %s items, amount %s (cycle %s #%s)",
            table_id, store_id, result.archived_orders, result.total_items, result.total_amount,
            result.sales_cycle.id, result.sales_cycle.cycle_number,
        )
    return result

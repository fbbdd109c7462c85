# Overview: Service-layer operations for maintenance; archive retention.

from __future__ import annotations

from datetime import date

from flask import current_app

from ..extensions import db
from ..models import (
    ArchivedOrder,
    ArchivedOrderItem,
    ArchivedOrderItemOption,
    ArchivedOrderItemTopping,
    SalesCycle,
)


def purge_archive(*, before: date, store_id: int | None = None) -> dict:
    """
    Delete completed cycles with accounting_date < before and their archive rows.

    The only delete path for archived data. Daily sales aggregates are kept.
    """
    query = db.session.query(SalesCycle.id).filter(
        SalesCycle.status == "completed",
        SalesCycle.accounting_date < before.isoformat(),
    )
    if store_id is not None:
        query = query.filter(SalesCycle.store_id == store_id)
    cycle_ids = [row.id for row in query.all()]

    deleted = {"cycles": 0, "orders": 0, "items": 0, "options": 0, "toppings": 0}
    if not cycle_ids:
        return deleted

    order_ids = [
        row.id for row in
        db.session.query(ArchivedOrder.id).filter(ArchivedOrder.sales_cycle_id.in_(cycle_ids)).all()
    ]
    item_ids = []
    if order_ids:
        item_ids = [
            row.id for row in
            db.session.query(ArchivedOrderItem.id).filter(ArchivedOrderItem.archived_order_id.in_(order_ids)).all()
        ]

    if item_ids:
        deleted["options"] = db.session.query(ArchivedOrderItemOption).filter(
            ArchivedOrderItemOption.archived_order_item_id.in_(item_ids)
        ).delete(synchronize_session=False)
        deleted["toppings"] = db.session.query(ArchivedOrderItemTopping).filter(
            ArchivedOrderItemTopping.archived_order_item_id.in_(item_ids)
        ).delete(synchronize_session=False)
        deleted["items"] = db.session.query(ArchivedOrderItem).filter(
            ArchivedOrderItem.id.in_(item_ids)
        ).delete(synchronize_session=False)
    if order_ids:
        deleted["orders"] = db.session.query(ArchivedOrder).filter(
            ArchivedOrder.id.in_(order_ids)
        ).delete(synchronize_session=False)
    deleted["cycles"] = db.session.query(SalesCycle).filter(
        SalesCycle.id.in_(cycle_ids)
    ).delete(synchronize_session=False)

    db.session.commit()
    current_app.logger.info("Purged archive before %s: %s", before.isoformat(), deleted)
    return deleted

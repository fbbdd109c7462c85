from __future__ import annotations

from ..extensions import db
from closeout.time_utils import to_utc_z

CYCLE_STATUSES = ("active", "completed", "cancelled")


class SalesCycle(db.Model):
    """
    One customer visit to a table, closed out by a checkout.

    Lifecycle: active -> completed exactly once, in the same transaction
    that writes the archive rows. A completed cycle is never reopened.
    cycle_number counts visits per table within one business day.
    """
    __tablename__ = "sales_cycles"
    __table_args__ = (
        db.Index("ix_sales_cycles_table_completed", "table_id", "completed_at"),
        db.Index("ix_sales_cycles_store_status_completed", "store_id", "status", "completed_at"),
        db.UniqueConstraint("table_id", "accounting_date", "cycle_number", name="uq_sales_cycles_table_date_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    table_id = db.Column(db.Integer, db.ForeignKey("dining_tables.id"), nullable=False, index=True)

    cycle_number = db.Column(db.Integer, nullable=False)
    accounting_date = db.Column(db.String(10), nullable=False, index=True)  # YYYY-MM-DD

    total_amount = db.Column(db.Integer, nullable=False, default=0)
    total_items = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="active", index=True)

    started_at = db.Column(db.DateTime(timezone=True), nullable=False)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    table = db.relationship("DiningTable")
    archived_orders = db.relationship("ArchivedOrder", back_populates="sales_cycle", lazy=True, order_by="ArchivedOrder.id")
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "table_id": self.table_id,
            "cycle_number": self.cycle_number,
            "accounting_date": self.accounting_date,
            "total_amount": self.total_amount,
            "total_items": self.total_items,
            "status": self.status,
            "started_at": to_utc_z(self.started_at),
            "completed_at": to_utc_z(self.completed_at) if self.completed_at else None,
        }


class ArchivedOrder(db.Model):
    """
    Immutable copy of a checked-out order.

    Archive rows are written once by checkout and never updated; they are
    the source of truth for historical reporting.
    """
    __tablename__ = "archived_orders"
    __table_args__ = (
        db.Index("ix_archived_orders_store_archived", "store_id", "archived_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sales_cycle_id = db.Column(db.Integer, db.ForeignKey("sales_cycles.id"), nullable=False, index=True)
    original_order_id = db.Column(db.Integer, nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    table_id = db.Column(db.Integer, db.ForeignKey("dining_tables.id"), nullable=False)
    table_number = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False)
    total_items = db.Column(db.Integer, nullable=False)
    total_amount = db.Column(db.Integer, nullable=False)

    original_created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    archived_at = db.Column(db.DateTime(timezone=True), nullable=False)

    sales_cycle = db.relationship("SalesCycle", back_populates="archived_orders")
    items = db.relationship("ArchivedOrderItem", back_populates="archived_order", lazy=True, order_by="ArchivedOrderItem.id")

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "sales_cycle_id": self.sales_cycle_id,
            "original_order_id": self.original_order_id,
            "table_id": self.table_id,
            "table_number": self.table_number,
            "status": self.status,
            "total_items": self.total_items,
            "total_amount": self.total_amount,
            "original_created_at": to_utc_z(self.original_created_at),
            "archived_at": to_utc_z(self.archived_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class ArchivedOrderItem(db.Model):
    __tablename__ = "archived_order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    archived_order_id = db.Column(db.Integer, db.ForeignKey("archived_orders.id"), nullable=False, index=True)
    original_item_id = db.Column(db.Integer, nullable=False)
    # Plain integer: the archive must outlive catalog changes
    menu_item_id = db.Column(db.Integer, nullable=False)

    name = db.Column(db.String(100), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Integer, nullable=False)
    total_price = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False)

    original_created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    archived_at = db.Column(db.DateTime(timezone=True), nullable=False)

    archived_order = db.relationship("ArchivedOrder", back_populates="items")
    options = db.relationship("ArchivedOrderItemOption", lazy=True, order_by="ArchivedOrderItemOption.id")
    toppings = db.relationship("ArchivedOrderItemTopping", lazy=True, order_by="ArchivedOrderItemTopping.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "original_item_id": self.original_item_id,
            "menu_item_id": self.menu_item_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
            "notes": self.notes,
            "status": self.status,
            "options": [{"name": o.name, "price": o.price} for o in self.options],
            "toppings": [{"name": t.name, "price": t.price} for t in self.toppings],
        }


class ArchivedOrderItemOption(db.Model):
    __tablename__ = "archived_order_item_options"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    archived_order_item_id = db.Column(db.Integer, db.ForeignKey("archived_order_items.id"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    price = db.Column(db.Integer, nullable=False)


class ArchivedOrderItemTopping(db.Model):
    __tablename__ = "archived_order_item_toppings"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    archived_order_item_id = db.Column(db.Integer, db.ForeignKey("archived_order_items.id"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    price = db.Column(db.Integer, nullable=False)

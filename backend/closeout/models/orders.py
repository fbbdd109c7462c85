from __future__ import annotations

from ..extensions import db
from closeout.time_utils import to_utc_z

ORDER_STATUSES = ("new", "in-progress", "ready", "delivered", "cancelled")


class Order(db.Model):
    """
    Live order placed from a table.

    Rows here are the mutable working set; checkout copies them into the
    archive and deletes them. Relationships are declared without delete
    cascades: the live graph is removed by an explicit delete keyed by order
    ids (see checkout_service.delete_order_graph).
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_store_status_updated", "store_id", "status", "updated_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    table_id = db.Column(db.Integer, db.ForeignKey("dining_tables.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default="new", index=True)
    total_items = db.Column(db.Integer, nullable=False, default=0)
    total_amount = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    table = db.relationship("DiningTable")
    items = db.relationship("OrderItem", back_populates="order", lazy=True, order_by="OrderItem.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "table_id": self.table_id,
            "status": self.status,
            "total_items": self.total_items,
            "total_amount": self.total_amount,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "items": [item.to_dict() for item in self.items],
        }


class OrderItem(db.Model):
    """
    One line of an order. base_price/unit_price/total_price are snapshots
    taken when the order was placed and never follow later menu changes.
    """
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    menu_item_id = db.Column(db.Integer, db.ForeignKey("menu_items.id"), nullable=False, index=True)

    name = db.Column(db.String(100), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    base_price = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Integer, nullable=False)
    total_price = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="new")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    order = db.relationship("Order", back_populates="items")
    options = db.relationship("OrderItemOption", lazy=True, order_by="OrderItemOption.id")
    toppings = db.relationship("OrderItemTopping", lazy=True, order_by="OrderItemTopping.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "menu_item_id": self.menu_item_id,
            "name": self.name,
            "quantity": self.quantity,
            "base_price": self.base_price,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
            "notes": self.notes,
            "status": self.status,
            "options": [{"name": o.name, "price": o.price} for o in self.options],
            "toppings": [{"name": t.name, "price": t.price} for t in self.toppings],
        }


class OrderItemOption(db.Model):
    __tablename__ = "order_item_options"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_item_id = db.Column(db.Integer, db.ForeignKey("order_items.id"), nullable=False, index=True)
    option_id = db.Column(db.Integer, db.ForeignKey("menu_options.id"), nullable=True)
    name = db.Column(db.String(100), nullable=False)
    price = db.Column(db.Integer, nullable=False, default=0)


class OrderItemTopping(db.Model):
    __tablename__ = "order_item_toppings"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_item_id = db.Column(db.Integer, db.ForeignKey("order_items.id"), nullable=False, index=True)
    topping_id = db.Column(db.Integer, db.ForeignKey("menu_toppings.id"), nullable=True)
    name = db.Column(db.String(100), nullable=False)
    price = db.Column(db.Integer, nullable=False, default=0)

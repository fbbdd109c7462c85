from __future__ import annotations

from ..extensions import db
from closeout.time_utils import to_utc_z

TABLE_AREAS = ("area1", "area2", "area3", "area4")
TABLE_STATUSES = ("available", "occupied", "reserved", "maintenance")


class DiningTable(db.Model):
    """
    A physical table in a store.

    The checkout row lock is taken on this row, so every checkout of the
    same table serializes here.
    """
    __tablename__ = "dining_tables"
    __table_args__ = (
        db.UniqueConstraint("store_id", "number", name="uq_dining_tables_store_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    number = db.Column(db.Integer, nullable=False)
    capacity = db.Column(db.Integer, nullable=False, default=4)
    area = db.Column(db.String(16), nullable=False, default="area1")
    status = db.Column(db.String(16), nullable=False, default="available")

    checkout_requested = db.Column(db.Boolean, nullable=False, default=False, index=True)
    checkout_requested_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("tables", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<DiningTable id={self.id} store_id={self.store_id} number={self.number}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "number": self.number,
            "capacity": self.capacity,
            "area": self.area,
            "status": self.status,
            "checkout_requested": self.checkout_requested,
            "checkout_requested_at": to_utc_z(self.checkout_requested_at) if self.checkout_requested_at else None,
            "version_id": self.version_id,
        }

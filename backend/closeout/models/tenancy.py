from __future__ import annotations

from ..extensions import db
from closeout.time_utils import to_utc_z


class Store(db.Model):
    """
    A restaurant store (tenant boundary for everything in this engine).

    All tables, orders, cycles and aggregates are scoped by store_id.
    There is no implicit default store: callers always pass store_id.
    """
    __tablename__ = "stores"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_stores_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    code = db.Column(db.String(32), nullable=True, index=True)

    # IANA zone name; all business-day math happens in this zone
    timezone = db.Column(db.String(64), nullable=False, default="Asia/Tokyo")

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r} tz={self.timezone}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "timezone": self.timezone,
            "created_at": to_utc_z(self.created_at),
        }


class StoreBusinessHours(db.Model):
    """
    Configured opening schedule of a store.

    close_time is stored normalized (00:00-23:59) with is_next_day set when
    the close falls after midnight; the "26:00" form is only rendered at the
    API boundary. day_of_week is always NULL for now (one schedule for every
    day); the service layer keeps a single active row per store.
    """
    __tablename__ = "store_business_hours"
    __table_args__ = (
        db.UniqueConstraint("store_id", "day_of_week", name="uq_store_business_hours_store_dow"),
        # NULLs never collide in the constraint above
        db.Index(
            "uq_store_business_hours_default",
            "store_id",
            unique=True,
            sqlite_where=db.text("day_of_week IS NULL"),
            postgresql_where=db.text("day_of_week IS NULL"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)

    open_time = db.Column(db.String(5), nullable=False)   # HH:MM
    close_time = db.Column(db.String(5), nullable=False)  # HH:MM, normalized
    is_next_day = db.Column(db.Boolean, nullable=False, default=False)
    day_of_week = db.Column(db.Integer, nullable=True)  # NULL = every day
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    store = db.relationship("Store", backref=db.backref("business_hours", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "open_time": self.open_time,
            "close_time": self.close_time,
            "is_next_day": self.is_next_day,
            "day_of_week": self.day_of_week,
            "is_active": self.is_active,
            "updated_at": to_utc_z(self.updated_at),
        }


class AccountingSettings(db.Model):
    """Per-store accounting knobs."""
    __tablename__ = "accounting_settings"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, unique=True)

    # Business-day start used only when the store has no business hours
    day_rollover_time = db.Column(db.String(5), nullable=False, default="05:00")

    tax_rate_bps = db.Column(db.Integer, nullable=False, default=1000)  # Basis points (1000 = 10%)

    # Delivered orders count as sold before the table checks out
    count_delivered_unbilled = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    store = db.relationship("Store", backref=db.backref("accounting_settings", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "store_id": self.store_id,
            "day_rollover_time": self.day_rollover_time,
            "tax_rate_bps": self.tax_rate_bps,
            "count_delivered_unbilled": self.count_delivered_unbilled,
            "updated_at": to_utc_z(self.updated_at),
        }

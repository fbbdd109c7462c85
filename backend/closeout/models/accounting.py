from __future__ import annotations

from ..extensions import db
from closeout.time_utils import to_utc_z


class DailySales(db.Model):
    """
    Daily sales aggregate for one store and accounting date.

    Rebuilt from the archive by recomputation. Once is_finalized is set the
    row is frozen and recompute refuses to touch it.
    """
    __tablename__ = "daily_sales"
    __table_args__ = (
        db.UniqueConstraint("store_id", "accounting_date", name="uq_daily_sales_store_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    accounting_date = db.Column(db.String(10), nullable=False, index=True)  # YYYY-MM-DD

    total_orders = db.Column(db.Integer, nullable=False, default=0)
    total_items = db.Column(db.Integer, nullable=False, default=0)
    total_amount = db.Column(db.Integer, nullable=False, default=0)
    tax_amount = db.Column(db.Integer, nullable=False, default=0)

    # [period_start, period_end) in UTC
    period_start = db.Column(db.DateTime(timezone=True), nullable=False)
    period_end = db.Column(db.DateTime(timezone=True), nullable=False)

    is_finalized = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "accounting_date": self.accounting_date,
            "total_orders": self.total_orders,
            "total_items": self.total_items,
            "total_amount": self.total_amount,
            "tax_amount": self.tax_amount,
            "period_start": to_utc_z(self.period_start),
            "period_end": to_utc_z(self.period_end),
            "is_finalized": self.is_finalized,
            "updated_at": to_utc_z(self.updated_at),
        }

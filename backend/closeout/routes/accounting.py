# Overview: Flask API routes for accounting dates and daily sales; parses input and returns JSON responses.

"""
Accounting API Routes

Accounting dates follow the store's business day (open_time to the next
open_time in the store timezone), so an order taken at 01:30 after a
17:00-26:00 shift belongs to the previous calendar date.

Dates are YYYY-MM-DD. Daily sales may be queried by "date" or by an
inclusive "startDate"/"endDate" range; with neither, the current
accounting date is used.
"""

from flask import Blueprint, current_app, jsonify, request

from ..services import business_hours_service, daily_sales_service, order_service
from ..services.business_calendar import format_business_hours
from ..services.business_hours_service import StoreNotFound
from ..services.daily_sales_service import AlreadyFinalized, DailySalesError, DailySalesNotFound
from ..time_utils import parse_accounting_date, parse_iso_datetime, to_utc_z


accounting_bp = Blueprint("accounting", __name__, url_prefix="/api/accounting")


def _arg(*names):
    for name in names:
        value = request.args.get(name)
        if value:
            return value
    return None


def _require_store_id(source: dict | None = None):
    if source is not None:
        store_id = source.get("store_id")
    else:
        store_id = request.args.get("store_id", type=int)
    if not store_id:
        raise ValueError("store_id required")
    return int(store_id)


@accounting_bp.get("/date")
def accounting_date_route():
    """
    Accounting date of an instant for a store.

    Query: store_id (required), at (ISO-8601, optional; default now).
    """
    try:
        store_id = _require_store_id()
        instant = parse_iso_datetime(request.args.get("at"))
        day = business_hours_service.get_accounting_date(store_id, instant)
        calendar = business_hours_service.get_store_calendar(store_id)
        period = calendar.period(day)
        return jsonify({
            "store_id": store_id,
            "accounting_date": day.isoformat(),
            "period_start": to_utc_z(period.start),
            "period_end": to_utc_z(period.end),
            "timezone": calendar.timezone,
            "business_hours": format_business_hours(calendar.hours) if calendar.has_business_hours else None,
        }), 200
    except StoreNotFound as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to resolve accounting date")
        return jsonify({"error": "Internal server error"}), 500


@accounting_bp.get("/daily-sales")
def daily_sales_route():
    try:
        store_id = _require_store_id()
        day = parse_accounting_date(_arg("date"))
        start = parse_accounting_date(_arg("startDate", "start_date"))
        end = parse_accounting_date(_arg("endDate", "end_date"))
        if (start is None) != (end is None):
            return jsonify({"error": "startDate and endDate must be given together"}), 400

        business_hours_service.get_store(store_id)
        rows = daily_sales_service.get_daily_sales(store_id, day, start, end)
        return jsonify({"daily_sales": [row.to_dict() for row in rows]}), 200
    except StoreNotFound as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to load daily sales")
        return jsonify({"error": "Internal server error"}), 500


@accounting_bp.post("/daily-sales/calculate")
def calculate_daily_sales_route():
    """
    Recompute the aggregate for a date.

    Request body: {"store_id": 1, "date": "2025-06-12"}
    """
    data = request.get_json(silent=True) or {}
    try:
        store_id = _require_store_id(data)
        day = parse_accounting_date(data.get("date"))
        if day is None:
            return jsonify({"error": "date required"}), 400

        row = daily_sales_service.recompute(store_id, day)
        return jsonify({"daily_sales": row.to_dict()}), 200
    except StoreNotFound as e:
        return jsonify({"error": str(e)}), 404
    except AlreadyFinalized as e:
        return jsonify({"error": str(e)}), 409
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to calculate daily sales")
        return jsonify({"error": "Internal server error"}), 500


@accounting_bp.post("/daily-sales/finalize")
def finalize_daily_sales_route():
    """
    Freeze the aggregate for a date. There is no way back.

    Request body: {"store_id": 1, "date": "2025-06-12"}
    """
    data = request.get_json(silent=True) or {}
    try:
        store_id = _require_store_id(data)
        day = parse_accounting_date(data.get("date"))
        if day is None:
            return jsonify({"error": "date required"}), 400

        row = daily_sales_service.finalize(store_id, day)
        return jsonify({"daily_sales": row.to_dict()}), 200
    except DailySalesNotFound as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to finalize daily sales")
        return jsonify({"error": "Internal server error"}), 500


@accounting_bp.get("/sales-summary")
def sales_summary_route():
    """Query: store_id, startDate, endDate (exclusive), groupBy=day|week|month."""
    try:
        store_id = _require_store_id()
        start = parse_accounting_date(_arg("startDate", "start_date"))
        end = parse_accounting_date(_arg("endDate", "end_date"))
        if start is None or end is None:
            return jsonify({"error": "startDate and endDate required"}), 400
        group_by = _arg("groupBy", "group_by") or "day"

        summary = daily_sales_service.sales_summary(store_id, start, end, group_by)
        return jsonify(summary), 200
    except (DailySalesError, ValueError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to build sales summary")
        return jsonify({"error": "Internal server error"}), 500


@accounting_bp.get("/sales-cycles")
def sales_cycles_route():
    """Completed cycles for a date (default: current accounting date)."""
    try:
        store_id = _require_store_id()
        day = parse_accounting_date(_arg("date"))
        if day is None:
            day = business_hours_service.get_accounting_date(store_id)

        cycles = daily_sales_service.list_sales_cycles(store_id, day)
        return jsonify({"accounting_date": day.isoformat(), "sales_cycles": cycles}), 200
    except StoreNotFound as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list sales cycles")
        return jsonify({"error": "Internal server error"}), 500


@accounting_bp.get("/orders")
def orders_for_date_route():
    """Live orders taken during a date's accounting period (default: current date)."""
    try:
        store_id = _require_store_id()
        day = parse_accounting_date(_arg("date"))
        if day is None:
            day = business_hours_service.get_accounting_date(store_id)

        orders = order_service.list_orders_for_date(store_id, day)
        return jsonify({"accounting_date": day.isoformat(), "orders": orders}), 200
    except StoreNotFound as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500

# Overview: Flask API routes for store business hours and accounting settings.

from flask import Blueprint, current_app, jsonify, request

from ..extensions import db
from ..services import business_hours_service
from ..services.business_calendar import CalendarError, format_business_hours
from ..services.business_hours_service import StoreNotFound


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


@stores_bp.get("/<int:store_id>")
def get_store(store_id: int):
    try:
        store = business_hours_service.get_store(store_id)
    except StoreNotFound as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(store.to_dict()), 200


@stores_bp.get("/<int:store_id>/business-hours")
def get_business_hours(store_id: int):
    try:
        business_hours_service.get_store(store_id)
    except StoreNotFound as e:
        return jsonify({"error": str(e)}), 404

    hours = business_hours_service.get_business_hours(store_id)
    if hours is None:
        return jsonify({"business_hours": None}), 200
    data = hours.to_dict()
    data["display"] = format_business_hours(hours)
    return jsonify({"business_hours": data}), 200


@stores_bp.put("/<int:store_id>/business-hours")
def set_business_hours(store_id: int):
    """
    Set the store's schedule.

    Request body: {"open_time": "17:00", "close_time": "26:00"}
    A close time past midnight may be written as "26:00" or "02:00".
    """
    data = request.get_json(silent=True) or {}
    open_time = data.get("open_time")
    close_time = data.get("close_time")
    if not open_time or not close_time:
        return jsonify({"error": "open_time and close_time required"}), 400

    try:
        business_hours_service.set_business_hours(store_id, open_time, close_time)
    except StoreNotFound as e:
        return jsonify({"error": str(e)}), 404
    except CalendarError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to set business hours for store %s", store_id)
        return jsonify({"error": "Internal server error"}), 500

    hours = business_hours_service.get_business_hours(store_id)
    data = hours.to_dict()
    data["display"] = format_business_hours(hours)
    return jsonify({"business_hours": data}), 200


@stores_bp.get("/<int:store_id>/accounting-settings")
def get_accounting_settings(store_id: int):
    try:
        settings = business_hours_service.get_accounting_settings(store_id)
        db.session.commit()
    except StoreNotFound as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(settings.to_dict()), 200


@stores_bp.put("/<int:store_id>/accounting-settings")
def update_accounting_settings(store_id: int):
    data = request.get_json(silent=True) or {}
    try:
        settings = business_hours_service.update_accounting_settings(
            store_id,
            day_rollover_time=data.get("day_rollover_time"),
            tax_rate_bps=data.get("tax_rate_bps"),
            count_delivered_unbilled=data.get("count_delivered_unbilled"),
        )
        return jsonify(settings.to_dict()), 200
    except StoreNotFound as e:
        return jsonify({"error": str(e)}), 404
    except (CalendarError, ValueError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update accounting settings for store %s", store_id)
        return jsonify({"error": "Internal server error"}), 500

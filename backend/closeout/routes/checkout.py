# Overview: Flask API routes for table checkout; parses input and returns JSON responses.

"""
Table checkout API routes.

- POST /api/tables/<id>/checkout?store_id=         staff checkout (idempotent)
- POST /api/tables/<id>/request-checkout?store_id= customer checkout request
- GET  /api/tables/checkout-requests?store_id=     tables waiting for staff
"""

from flask import Blueprint, current_app, jsonify, request

from ..services import checkout_service, order_service
from ..services.business_hours_service import StoreNotFound
from ..services.checkout_service import CheckoutFailed
from ..services.order_service import TableNotFound


checkout_bp = Blueprint("checkout", __name__, url_prefix="/api/tables")


def _store_id_arg():
    store_id = request.args.get("store_id", type=int)
    if store_id is None:
        data = request.get_json(silent=True) or {}
        store_id = data.get("store_id")
    return store_id


@checkout_bp.post("/<int:table_id>/checkout")
def checkout_route(table_id: int):
    """
    Close out a table.

    A table with no open orders returns archived_orders == 0 and no cycle.
    """
    store_id = _store_id_arg()
    if not store_id:
        return jsonify({"error": "store_id required"}), 400

    try:
        result = checkout_service.checkout(store_id, table_id)
        return jsonify(result.to_dict()), 200
    except (TableNotFound, StoreNotFound) as e:
        return jsonify({"error": str(e)}), 404
    except CheckoutFailed as e:
        return jsonify({
            "error": "Checkout failed; no changes were made",
            "details": {"cause": str(e.cause), "retry": True},
        }), 500
    except Exception:
        current_app.logger.exception("Checkout of table %s failed", table_id)
        return jsonify({"error": "Internal server error"}), 500


@checkout_bp.post("/<int:table_id>/request-checkout")
def request_checkout_route(table_id: int):
    store_id = _store_id_arg()
    if not store_id:
        return jsonify({"error": "store_id required"}), 400

    try:
        table = order_service.request_checkout(store_id, table_id)
        return jsonify({"table": table.to_dict()}), 200
    except TableNotFound as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Checkout request for table %s failed", table_id)
        return jsonify({"error": "Internal server error"}), 500


@checkout_bp.get("/checkout-requests")
def list_checkout_requests_route():
    store_id = request.args.get("store_id", type=int)
    if not store_id:
        return jsonify({"error": "store_id required"}), 400

    tables = order_service.list_checkout_requested_tables(store_id)
    return jsonify({"tables": [table.to_dict() for table in tables]}), 200

# Overview: Flask API routes for bills and the dashboard.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import IronPressError
from ..models.auth import ROLE_ADMIN, ROLE_SUPER_ADMIN
from ..services import billing_service, reporting_service, tenant_service


bills_bp = Blueprint("bills", __name__, url_prefix="/api/bills")


@bills_bp.get("")
@require_auth
def list_bills_route():
    """
    Query params: status (or "all"), search, start_date, end_date, page,
    limit; super admins may pass store_id or omit it for every store.
    """
    try:
        store_id = tenant_service.resolve_store_scope(request.args.get("store_id"), required=False)
        result = billing_service.list_bills(
            store_id=store_id,
            status=request.args.get("status"),
            search=request.args.get("search"),
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
            page=request.args.get("page", 1),
            limit=request.args.get("limit", billing_service.DEFAULT_PAGE_SIZE),
        )
        return jsonify(result), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list bills")
        return jsonify({"error": "Internal server error"}), 500


@bills_bp.post("")
@require_auth
def create_bill_route():
    try:
        data = request.get_json(silent=True) or {}
        store_id = tenant_service.resolve_store_scope(data.get("store_id"))
        bill = billing_service.create_bill(data, store_id)
        return jsonify({"bill": bill.to_dict(include_notifications=True)}), 201
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create bill")
        return jsonify({"error": "Internal server error"}), 500


@bills_bp.get("/dashboard")
@require_auth
def dashboard_route():
    try:
        store_id = tenant_service.resolve_store_scope(request.args.get("store_id"), required=False)
        return jsonify(reporting_service.get_dashboard_stats(store_id)), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to build dashboard")
        return jsonify({"error": "Internal server error"}), 500


@bills_bp.get("/<bill_id>")
@require_auth
def get_bill_route(bill_id: str):
    try:
        store_id = tenant_service.resolve_store_scope(required=False)
        bill = billing_service.get_bill(bill_id, store_id)
        return jsonify({"bill": bill.to_dict(include_notifications=True)}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load bill")
        return jsonify({"error": "Internal server error"}), 500


@bills_bp.patch("/<bill_id>")
@require_auth
def update_bill_route(bill_id: str):
    try:
        store_id = tenant_service.resolve_store_scope(required=False)
        data = request.get_json(silent=True) or {}
        bill = billing_service.update_bill(bill_id, data, store_id)
        return jsonify({"bill": bill.to_dict(include_notifications=True)}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update bill")
        return jsonify({"error": "Internal server error"}), 500


@bills_bp.delete("/<bill_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def delete_bill_route(bill_id: str):
    try:
        store_id = tenant_service.resolve_store_scope(required=False)
        billing_service.delete_bill(bill_id, store_id)
        return jsonify({"message": "Bill deleted successfully"}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete bill")
        return jsonify({"error": "Internal server error"}), 500

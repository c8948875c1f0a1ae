# Overview: Flask API routes for store customers.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import IronPressError
from ..models.auth import ROLE_ADMIN, ROLE_SUPER_ADMIN
from ..services import customer_service, tenant_service


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
def list_customers_route():
    try:
        store_id = tenant_service.resolve_store_scope(request.args.get("store_id"))
        customers = customer_service.list_customers(store_id, search=request.args.get("search"))
        return jsonify({"customers": [c.to_dict() for c in customers]}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list customers")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.post("")
@require_auth
def create_customer_route():
    try:
        data = request.get_json(silent=True) or {}
        store_id = tenant_service.resolve_store_scope(data.get("store_id"))
        customer = customer_service.create_customer(store_id, data)
        return jsonify({"customer": customer.to_dict()}), 201
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.get("/<customer_id>")
@require_auth
def get_customer_route(customer_id: str):
    try:
        store_id = tenant_service.resolve_store_scope(required=False)
        return jsonify({"customer": customer_service.get_customer_with_bills(customer_id, store_id)}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load customer")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.put("/<customer_id>")
@require_auth
def update_customer_route(customer_id: str):
    try:
        store_id = tenant_service.resolve_store_scope(required=False)
        data = request.get_json(silent=True) or {}
        customer = customer_service.update_customer(customer_id, data, store_id)
        return jsonify({"customer": customer.to_dict()}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update customer")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.delete("/<customer_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def delete_customer_route(customer_id: str):
    try:
        store_id = tenant_service.resolve_store_scope(required=False)
        customer_service.delete_customer(customer_id, store_id)
        return jsonify({"message": "Customer deleted successfully"}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete customer")
        return jsonify({"error": "Internal server error"}), 500

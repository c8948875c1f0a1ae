# Overview: Flask API routes for the store's service catalog.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import IronPressError
from ..models.auth import ROLE_ADMIN, ROLE_SUPER_ADMIN
from ..services import category_service, tenant_service


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories_route():
    try:
        store_id = tenant_service.resolve_store_scope(request.args.get("store_id"))
        active_only = request.args.get("active_only", "false").lower() in {"1", "true", "yes"}
        categories = category_service.list_categories(store_id, active_only=active_only)
        return jsonify({"categories": [c.to_dict() for c in categories]}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list categories")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.post("")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def create_category_route():
    try:
        data = request.get_json(silent=True) or {}
        store_id = tenant_service.resolve_store_scope(data.get("store_id"))
        category = category_service.create_category(store_id, data)
        return jsonify({"category": category.to_dict()}), 201
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.get("/<category_id>")
@require_auth
def get_category_route(category_id: str):
    try:
        store_id = tenant_service.resolve_store_scope(required=False)
        category = category_service.get_category(category_id, store_id)
        return jsonify({"category": category.to_dict()}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.put("/<category_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def update_category_route(category_id: str):
    try:
        store_id = tenant_service.resolve_store_scope(required=False)
        data = request.get_json(silent=True) or {}
        category = category_service.update_category(category_id, data, store_id)
        return jsonify({"category": category.to_dict()}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.delete("/<category_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def delete_category_route(category_id: str):
    try:
        store_id = tenant_service.resolve_store_scope(required=False)
        category_service.delete_category(category_id, store_id)
        return jsonify({"message": "Category deleted successfully"}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete category")
        return jsonify({"error": "Internal server error"}), 500

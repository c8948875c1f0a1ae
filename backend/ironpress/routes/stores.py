# Overview: Flask API routes for store registration, lifecycle and settings.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import IronPressError
from ..models.auth import ROLE_ADMIN, ROLE_SUPER_ADMIN
from ..services import settings_service, store_service, tenant_service, user_service


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


@stores_bp.post("/register")
def register_store_route():
    """Public self-registration; the store waits for super admin approval."""
    try:
        data = request.get_json(silent=True) or {}
        store, admin = store_service.register_store(data)
        return jsonify({
            "store": store.to_dict(),
            "admin": admin.to_dict(),
            "message": "Registration received. You can log in once the store is approved.",
        }), 201
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to register store")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.get("")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def list_stores_route():
    include_inactive = request.args.get("include_inactive", "true").lower() != "false"
    stores = store_service.list_stores(include_inactive=include_inactive)
    return jsonify({"stores": [s.to_dict() for s in stores]}), 200


@stores_bp.get("/<store_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def get_store_route(store_id: str):
    """Store profile with its users."""
    try:
        store = store_service.get_store(store_id)
        data = store.to_dict()
        data["users"] = [u.to_dict() for u in user_service.list_store_users(store_id)]
        return jsonify({"store": data}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load store")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.put("/<store_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def update_store_route(store_id: str):
    try:
        data = request.get_json(silent=True) or {}
        store = store_service.update_store(store_id, data)
        return jsonify({"store": store.to_dict()}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update store")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.post("/<store_id>/approve")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def approve_store_route(store_id: str):
    try:
        store = store_service.approve_store(store_id)
        return jsonify({"store": store.to_dict()}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to approve store")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.post("/<store_id>/reject")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def reject_store_route(store_id: str):
    try:
        store_service.reject_store(store_id)
        return jsonify({"message": "Store rejected"}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to reject store")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.post("/<store_id>/toggle-status")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def toggle_store_status_route(store_id: str):
    try:
        data = request.get_json(silent=True) or {}
        store = store_service.toggle_store_status(store_id, reason=data.get("reason"))
        return jsonify({"store": store.to_dict()}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to toggle store status")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.delete("/<store_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def delete_store_route(store_id: str):
    try:
        store_service.delete_store(store_id)
        return jsonify({"message": "Store deleted successfully"}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete store")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.get("/<store_id>/settings")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def get_store_settings_route(store_id: str):
    try:
        tenant_service.require_same_store(store_id)
        store_service.get_store(store_id)
        return jsonify({"store_id": store_id, "settings": settings_service.get_settings(store_id)}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load store settings")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.put("/<store_id>/settings")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def update_store_settings_route(store_id: str):
    """
    Bulk update. Body: {"settings": {key: value}} or a bare {key: value}
    mapping. Legacy key names are accepted.
    """
    try:
        tenant_service.require_same_store(store_id)
        data = request.get_json(silent=True) or {}
        updates = data.get("settings") if isinstance(data.get("settings"), dict) else data
        settings = settings_service.update_settings(store_id, updates)
        return jsonify({"store_id": store_id, "settings": settings}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update store settings")
        return jsonify({"error": "Internal server error"}), 500

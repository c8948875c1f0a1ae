# Overview: Flask API routes for store staff management.

"""
Staff routes.

Store admins manage the users of their own store. Super admins pass
?store_id= (or "store_id" in the body) to act on a given store.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import IronPressError
from ..models.auth import ROLE_ADMIN, ROLE_SUPER_ADMIN
from ..services import tenant_service, user_service


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def list_users_route():
    """
    Query params:
    - include_inactive: bool (default true)
    - store_id: super admins only
    """
    try:
        store_id = tenant_service.resolve_store_scope(request.args.get("store_id"))
        include_inactive = request.args.get("include_inactive", "true").lower() != "false"
        users = user_service.list_store_users(store_id, include_inactive=include_inactive)
        return jsonify({"users": [u.to_dict() for u in users], "count": len(users)}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list users")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.post("")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def create_employee_route():
    """Body: name, email, password (and store_id for super admins)."""
    try:
        data = request.get_json(silent=True) or {}
        store_id = tenant_service.resolve_store_scope(data.get("store_id"))
        employee = user_service.create_employee(store_id, data)
        return jsonify({"user": employee.to_dict(), "message": "Employee created successfully"}), 201
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create employee")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.patch("/<user_id>/toggle-status")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def toggle_user_status_route(user_id: str):
    try:
        store_id = tenant_service.resolve_store_scope(required=False)
        user, revoked = user_service.toggle_user_status(user_id, store_id, g.current_user.id)
        state = "activated" if user.is_active else "deactivated"
        return jsonify({
            "user": user.to_dict(),
            "message": f"User {state} successfully",
            "sessions_revoked": revoked,
        }), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to toggle user status")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.delete("/<user_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def delete_employee_route(user_id: str):
    try:
        store_id = tenant_service.resolve_store_scope(required=False)
        user_service.delete_employee(user_id, store_id)
        return jsonify({"message": "Employee deleted successfully"}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete employee")
        return jsonify({"error": "Internal server error"}), 500

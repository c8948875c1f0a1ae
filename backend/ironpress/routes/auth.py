# Overview: Flask API routes for login, logout, the current session and self-service profile changes.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import IronPressError
from ..services import auth_service, session_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    The token must be sent as `Authorization: Bearer <token>`.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")
        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        session, token = session_service.create_session(user.id)

        return jsonify({
            "token": token,
            "expires_at": session.to_dict()["expires_at"],
            "user": user.to_dict(),
            "store": user.store.to_dict() if user.store else None,
        }), 200

    except IronPressError as e:
        current_app.logger.info("Login failed for %s: %s", (request.get_json(silent=True) or {}).get("email"), e.message)
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Login failed")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    token = request.headers.get("Authorization", "").split(" ", 1)[1]
    session_service.revoke_session(token, reason="User logout")
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    return jsonify({
        "user": user.to_dict(),
        "store": user.store.to_dict() if user.store else None,
    }), 200


@auth_bp.put("/profile")
@require_auth
def update_profile_route():
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.update_profile(g.current_user, data)
        return jsonify({"user": user.to_dict()}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update profile")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.put("/change-password")
@require_auth
def change_password_route():
    """
    Change the caller's password.

    Body: current_password, new_password. The calling session stays
    valid; every other session of the user is revoked.
    """
    try:
        data = request.get_json(silent=True) or {}
        revoked = auth_service.change_password(
            g.current_user,
            data.get("current_password"),
            data.get("new_password"),
            keep_session_id=g.session_context.session.id,
        )
        return jsonify({"message": "Password changed", "sessions_revoked": revoked}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to change password")
        return jsonify({"error": "Internal server error"}), 500

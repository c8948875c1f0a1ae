# Overview: Flask API routes for manual bill notifications and their history.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth
from ..errors import IronPressError
from ..services import notification_service, tenant_service


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.post("/bills/<bill_id>/send")
@require_auth
def send_bill_notification_route(bill_id: str):
    """
    Send one notification now. Body: {"type": "SMS"|"EMAIL"|"WHATSAPP",
    "kind": optional}. A delivery failure still answers 200 with the
    FAILED/SKIPPED record.
    """
    try:
        data = request.get_json(silent=True) or {}
        store_id = tenant_service.resolve_store_scope(required=False)
        notification = notification_service.send_bill_notification(
            bill_id,
            data.get("type") or "SMS",
            kind=data.get("kind"),
            store_id=store_id,
        )
        return jsonify({"notification": notification.to_dict()}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to send notification")
        return jsonify({"error": "Internal server error"}), 500


@notifications_bp.get("/history")
@require_auth
def notification_history_route():
    try:
        store_id = tenant_service.resolve_store_scope(request.args.get("store_id"), required=False)
        notifications = notification_service.get_notification_history(
            bill_id=request.args.get("bill_id"),
            store_id=store_id,
        )
        return jsonify({"notifications": [n.to_dict(include_bill=True) for n in notifications]}), 200
    except IronPressError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load notification history")
        return jsonify({"error": "Internal server error"}), 500

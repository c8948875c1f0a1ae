# Overview: Bill notifications: rendering, per-store eligibility, delivery, audit records and the outbox.

"""
Notification Dispatcher

Two entry points:

- send_bill_notification(): one synchronous attempt on one channel. Always
  appends exactly one Notification row (SENT, FAILED or SKIPPED); provider
  errors are logged and recorded as the generic failure string.

- enqueue_bill_notifications() + dispatch_jobs(): triggered flows
  (payment confirmation, collection reminder). Jobs are written to the
  notification_jobs outbox inside the caller's bill transaction and handed
  to the dispatcher after commit. Whatever happens there is logged and
  never reaches the request that changed the bill.

NOTIFICATION_DISPATCH_MODE:
- thread: background executor with its own app context (default)
- inline: processed right after commit in the calling thread
- outbox: left PENDING for `flask notifications process`
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from decimal import Decimal
from typing import Any

from flask import current_app, render_template
from sqlalchemy import or_, update
from sqlalchemy.orm import joinedload

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Bill, BillItem, Notification, NotificationJob, new_id
from ..models.notifications import (
    CHANNELS,
    KIND_BILL_UPDATE,
    KIND_COLLECTION_REMINDER,
    KIND_PAYMENT_CONFIRMATION,
    KINDS,
)
from ..settings_catalog import channel_toggle_key
from ..time_utils import utcnow
from . import messaging, settings_service
from .payment_code_service import build_payment_details


GENERIC_FAILURE = "Failed to send notification"
CHANNEL_LABELS = {"SMS": "SMS", "EMAIL": "Email", "WHATSAPP": "WhatsApp"}
CURRENCY_SYMBOLS = {"INR": "₹", "USD": "$", "EUR": "€", "GBP": "£"}

TEMPLATES = {
    (KIND_BILL_UPDATE, "SMS"): "notifications/bill_update_sms.txt",
    (KIND_BILL_UPDATE, "WHATSAPP"): "notifications/bill_update.txt",
    (KIND_BILL_UPDATE, "EMAIL"): "notifications/bill_update.html",
    (KIND_PAYMENT_CONFIRMATION, "SMS"): "notifications/payment_confirmation.txt",
    (KIND_PAYMENT_CONFIRMATION, "WHATSAPP"): "notifications/payment_confirmation.txt",
    (KIND_PAYMENT_CONFIRMATION, "EMAIL"): "notifications/payment_confirmation.html",
    (KIND_COLLECTION_REMINDER, "SMS"): "notifications/collection_reminder.txt",
    (KIND_COLLECTION_REMINDER, "WHATSAPP"): "notifications/collection_reminder.txt",
    (KIND_COLLECTION_REMINDER, "EMAIL"): "notifications/collection_reminder.html",
}

SUBJECTS = {
    KIND_BILL_UPDATE: "Bill Ready #{number} - {app_name}",
    KIND_PAYMENT_CONFIRMATION: "Payment Confirmation - #{number}",
    KIND_COLLECTION_REMINDER: "Clothes Ready for Collection - #{number}",
}

JOB_PENDING = "PENDING"
JOB_PROCESSING = "PROCESSING"
JOB_DONE = "DONE"
JOB_FAILED = "FAILED"


def normalize_channel(channel: str | None) -> str:
    value = (channel or "").strip().upper()
    if value not in CHANNELS:
        raise ValidationError("Invalid notification type", {"type": channel, "allowed": list(CHANNELS)})
    return value


def normalize_kind(kind: str | None) -> str:
    value = (kind or KIND_BILL_UPDATE).strip().upper()
    if value not in KINDS:
        raise ValidationError("Invalid notification kind", {"kind": kind, "allowed": list(KINDS)})
    return value


def _load_bill(bill_id: str, store_id: str | None = None) -> Bill:
    bill = (
        db.session.query(Bill)
        .options(
            joinedload(Bill.customer),
            joinedload(Bill.items).joinedload(BillItem.category),
        )
        .filter(Bill.id == bill_id)
        .first()
    )
    # Another store's bill is reported exactly like a missing one
    if not bill or (store_id and bill.store_id != store_id):
        raise NotFoundError("Bill not found", {"bill_id": bill_id})
    return bill


def recipient_for(customer, channel: str) -> str | None:
    if customer is None:
        return None
    if channel == "EMAIL":
        return (customer.email or "").strip() or None
    return (customer.phone or "").strip() or None


def is_channel_enabled(settings: dict[str, Any], channel: str) -> bool:
    return bool(settings.get(channel_toggle_key(channel)))


def _money(value) -> str:
    return f"{Decimal(value or 0):.2f}"


def render_message(bill: Bill, channel: str, kind: str, settings: dict[str, Any]) -> tuple[str | None, str]:
    """Return (subject, body) for one channel; subject is None for text channels."""
    cfg = current_app.config
    currency = settings.get("store.currency") or "INR"
    context = {
        "app_name": cfg.get("APP_NAME", "IronPress"),
        "app_url": cfg.get("APP_URL", ""),
        "store_name": bill.store.name if bill.store else "",
        "bill": bill,
        "customer": bill.customer,
        "items": [
            {
                "name": item.category.name if item.category else "Item",
                "quantity": item.quantity,
                "price": _money(item.price),
                "subtotal": _money(item.subtotal),
            }
            for item in bill.items
        ],
        "total": _money(bill.total_amount),
        "currency_symbol": CURRENCY_SYMBOLS.get(currency, currency + " "),
        "is_paid": bill.payment_status == "PAID",
        "payment": build_payment_details(bill, settings, include_qr=(channel == "EMAIL")),
    }
    body = render_template(TEMPLATES[(kind, channel)], **context).strip()
    subject = None
    if channel == "EMAIL":
        subject = SUBJECTS[kind].format(number=bill.bill_number, app_name=context["app_name"])
    return subject, body


def _record(bill: Bill, channel: str, kind: str, *, status: str, recipient: str | None,
            message: str, error: str | None = None) -> Notification:
    notification = Notification(
        bill_id=bill.id,
        type=channel,
        kind=kind,
        status=status,
        recipient=recipient or "",
        message=message,
        sent_at=utcnow() if status == "SENT" else None,
        error=error,
    )
    db.session.add(notification)
    db.session.commit()
    return notification


def send_bill_notification(
    bill_id: str,
    channel: str = "SMS",
    kind: str = KIND_BILL_UPDATE,
    store_id: str | None = None,
) -> Notification:
    """
    Attempt one notification for a bill and record the outcome.

    Raises NotFoundError for an unknown bill (or one outside `store_id`)
    and ValidationError for an unknown channel or kind. Delivery problems
    never raise: they become FAILED or SKIPPED records.
    """
    channel = normalize_channel(channel)
    kind = normalize_kind(kind)
    bill = _load_bill(bill_id, store_id)
    settings = settings_service.get_settings(bill.store_id, include_sensitive=True)
    subject, body = render_message(bill, channel, kind, settings)
    recipient = recipient_for(bill.customer, channel)
    label = CHANNEL_LABELS[channel]

    if not is_channel_enabled(settings, channel):
        current_app.logger.info("%s skipped for store %s: disabled", label, bill.store_id)
        return _record(
            bill, channel, kind,
            status="SKIPPED",
            recipient=recipient,
            message=body,
            error=f"{label} notifications are disabled for this store",
        )

    if not recipient:
        current_app.logger.warning("%s not sent for bill %s: customer has no recipient", label, bill.bill_number)
        return _record(
            bill, channel, kind,
            status="FAILED",
            recipient=None,
            message=body,
            error=f"Customer has no {label} recipient",
        )

    try:
        provider = messaging.resolve_provider(channel, settings)
        success = bool(provider.send(recipient, body, subject=subject))
    except Exception:
        current_app.logger.exception("%s provider error for bill %s", label, bill.bill_number)
        success = False

    return _record(
        bill, channel, kind,
        status="SENT" if success else "FAILED",
        recipient=recipient,
        message=body,
        error=None if success else GENERIC_FAILURE,
    )


# =============================================================================
# Triggered flows (outbox)
# =============================================================================

def eligible_channels(bill: Bill, settings: dict[str, Any]) -> list[str]:
    """Channels enabled for the store that have a recipient on the customer."""
    return [
        channel for channel in CHANNELS
        if is_channel_enabled(settings, channel) and recipient_for(bill.customer, channel)
    ]


def enqueue_bill_notifications(bill: Bill, kind: str) -> list[str]:
    """
    Add outbox jobs for `kind` on every eligible channel.

    Does not commit: the jobs belong to the caller's bill transaction.
    Returns the job ids for dispatch_jobs() after commit.
    """
    kind = normalize_kind(kind)
    settings = settings_service.get_settings(bill.store_id)
    job_ids = []
    for channel in eligible_channels(bill, settings):
        job = NotificationJob(
            id=new_id(),
            store_id=bill.store_id,
            bill_id=bill.id,
            kind=kind,
            channel=channel,
            status=JOB_PENDING,
            attempts=0,
        )
        db.session.add(job)
        job_ids.append(job.id)
    return job_ids


def _claim_job(job_id: str) -> NotificationJob | None:
    """Move a job PENDING -> PROCESSING; None if another worker got it first."""
    result = db.session.execute(
        update(NotificationJob)
        .where(NotificationJob.id == job_id, NotificationJob.status == JOB_PENDING)
        .values(status=JOB_PROCESSING, attempts=NotificationJob.attempts + 1, claimed_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    if not result.rowcount:
        return None
    job = db.session.get(NotificationJob, job_id)
    if job is not None:
        db.session.refresh(job)
    return job


def process_job(job_id: str) -> NotificationJob | None:
    """
    Run one outbox job.

    DONE once a Notification row exists for it (whatever its status). An
    unexpected error puts the job back to PENDING until
    NOTIFICATION_MAX_ATTEMPTS is reached, then FAILED.
    """
    job = _claim_job(job_id)
    if job is None:
        return None

    bill_id, channel, kind = job.bill_id, job.channel, job.kind
    try:
        notification = send_bill_notification(bill_id, channel, kind)
    except Exception as exc:
        db.session.rollback()
        current_app.logger.exception("Notification job %s failed", job_id)
        job = db.session.get(NotificationJob, job_id)
        if job is None:
            return None
        max_attempts = int(current_app.config.get("NOTIFICATION_MAX_ATTEMPTS", 3))
        job.last_error = f"{type(exc).__name__}: {exc}"[:500]
        if job.attempts >= max_attempts:
            job.status = JOB_FAILED
            job.processed_at = utcnow()
        else:
            job.status = JOB_PENDING
        db.session.commit()
        return job

    job.status = JOB_DONE
    job.notification_id = notification.id
    job.processed_at = utcnow()
    job.last_error = None
    db.session.commit()
    return job


def _run_job_safely(job_id: str) -> None:
    try:
        process_job(job_id)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Notification dispatcher crashed on job %s", job_id)


def _executor(app) -> ThreadPoolExecutor:
    executor = app.extensions.get("ironpress.notification_executor")
    if executor is None:
        executor = ThreadPoolExecutor(
            max_workers=int(app.config.get("NOTIFICATION_WORKERS", 2)),
            thread_name_prefix="notifications",
        )
        app.extensions["ironpress.notification_executor"] = executor
    return executor


def dispatch_jobs(job_ids: list[str]) -> None:
    """Hand committed outbox jobs to the configured dispatcher. Never raises."""
    if not job_ids:
        return
    mode = (current_app.config.get("NOTIFICATION_DISPATCH_MODE") or "thread").lower()

    if mode == "outbox":
        current_app.logger.debug("Left %d notification job(s) in the outbox", len(job_ids))
        return

    if mode == "inline":
        for job_id in job_ids:
            _run_job_safely(job_id)
        return

    app = current_app._get_current_object()

    def _worker(job_id: str) -> None:
        with app.app_context():
            _run_job_safely(job_id)

    try:
        executor = _executor(app)
        for job_id in job_ids:
            executor.submit(_worker, job_id)
    except RuntimeError:
        # Executor shut down; the jobs stay PENDING for the CLI worker
        current_app.logger.exception("Could not schedule %d notification job(s)", len(job_ids))


def release_stale_jobs() -> int:
    """
    Put PROCESSING jobs whose worker never finished back in the queue.

    A job claimed more than NOTIFICATION_STALE_AFTER_SECONDS ago (or with no
    claim time recorded) goes back to PENDING, or to FAILED when its
    attempts are used up.
    """
    stale_after = int(current_app.config.get("NOTIFICATION_STALE_AFTER_SECONDS", 300))
    max_attempts = int(current_app.config.get("NOTIFICATION_MAX_ATTEMPTS", 3))
    cutoff = utcnow() - timedelta(seconds=stale_after)

    stale = (
        db.session.query(NotificationJob)
        .filter(NotificationJob.status == JOB_PROCESSING)
        .filter(or_(NotificationJob.claimed_at.is_(None), NotificationJob.claimed_at < cutoff))
        .all()
    )
    for job in stale:
        job.last_error = "Worker did not finish the job"
        if job.attempts >= max_attempts:
            job.status = JOB_FAILED
            job.processed_at = utcnow()
        else:
            job.status = JOB_PENDING
        current_app.logger.warning("Released stale notification job %s (%s)", job.id, job.status)
    db.session.commit()
    return len(stale)


def process_pending_jobs(limit: int = 50) -> dict[str, int]:
    """Release stale claims, then drain PENDING outbox jobs, oldest first."""
    release_stale_jobs()
    job_ids = [
        job_id for (job_id,) in (
            db.session.query(NotificationJob.id)
            .filter(NotificationJob.status == JOB_PENDING)
            .order_by(NotificationJob.created_at.asc())
            .limit(limit)
            .all()
        )
    ]
    summary = {"claimed": 0, "done": 0, "retrying": 0, "failed": 0}
    for job_id in job_ids:
        job = process_job(job_id)
        if job is None:
            continue
        summary["claimed"] += 1
        if job.status == JOB_DONE:
            summary["done"] += 1
        elif job.status == JOB_FAILED:
            summary["failed"] += 1
        else:
            summary["retrying"] += 1
    return summary


def get_notification_history(
    bill_id: str | None = None,
    store_id: str | None = None,
    limit: int = 50,
) -> list[Notification]:
    """Newest first, with bill and customer loaded."""
    query = (
        db.session.query(Notification)
        .join(Bill, Notification.bill_id == Bill.id)
        .options(joinedload(Notification.bill).joinedload(Bill.customer))
    )
    if bill_id:
        query = query.filter(Notification.bill_id == bill_id)
    if store_id:
        query = query.filter(Bill.store_id == store_id)
    return query.order_by(Notification.created_at.desc()).limit(limit).all()

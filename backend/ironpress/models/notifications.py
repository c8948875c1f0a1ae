from __future__ import annotations

from ..extensions import db
from ironpress.time_utils import to_utc_z, utcnow
from .tenancy import new_id


CHANNELS = ("SMS", "EMAIL", "WHATSAPP")
KIND_BILL_UPDATE = "BILL_UPDATE"
KIND_PAYMENT_CONFIRMATION = "PAYMENT_CONFIRMATION"
KIND_COLLECTION_REMINDER = "COLLECTION_REMINDER"
KINDS = (KIND_BILL_UPDATE, KIND_PAYMENT_CONFIRMATION, KIND_COLLECTION_REMINDER)

NOTIFICATION_STATUSES = ("PENDING", "SENT", "FAILED", "SKIPPED")
JOB_STATUSES = ("PENDING", "PROCESSING", "DONE", "FAILED")


class Notification(db.Model):
    """
    Append-only audit record of one notification attempt.

    Written after the attempt completes; never updated. Calling the
    dispatcher twice produces two rows.
    """
    __tablename__ = "notifications"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    bill_id = db.Column(db.String(36), db.ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True)
    type = db.Column(db.String(16), nullable=False)
    kind = db.Column(db.String(32), nullable=False, default=KIND_BILL_UPDATE)
    status = db.Column(db.String(16), nullable=False, default="PENDING", index=True)
    recipient = db.Column(db.String(255), nullable=True)
    message = db.Column(db.Text, nullable=False)
    sent_at = db.Column(db.DateTime(timezone=True), nullable=True)
    error = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self, include_bill: bool = False) -> dict:
        data = {
            "id": self.id,
            "bill_id": self.bill_id,
            "type": self.type,
            "kind": self.kind,
            "status": self.status,
            "recipient": self.recipient,
            "message": self.message,
            "sent_at": to_utc_z(self.sent_at),
            "error": self.error,
            "created_at": to_utc_z(self.created_at),
        }
        if include_bill and self.bill is not None:
            data["bill"] = self.bill.to_dict(include_items=False, include_customer=True)
        return data


class NotificationJob(db.Model):
    """
    Outbox row for a notification triggered by a bill change.

    Written in the same transaction as the bill change. The dispatcher
    moves it PENDING -> PROCESSING -> DONE, or back to PENDING on an
    unexpected error until attempts are exhausted (then FAILED). A job left
    in PROCESSING past the stale timeout is released by the next drain.
    """
    __tablename__ = "notification_jobs"
    __table_args__ = (
        db.Index("ix_notification_jobs_status_created", "status", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    bill_id = db.Column(db.String(36), db.ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = db.Column(db.String(32), nullable=False)
    channel = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="PENDING")
    attempts = db.Column(db.Integer, nullable=False, default=0)
    last_error = db.Column(db.Text, nullable=True)
    notification_id = db.Column(db.String(36), db.ForeignKey("notifications.id", ondelete="SET NULL"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    claimed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    processed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    notification = db.relationship("Notification")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "bill_id": self.bill_id,
            "kind": self.kind,
            "channel": self.channel,
            "status": self.status,
            "attempts": self.attempts,
            "last_error": self.last_error,
            "notification_id": self.notification_id,
            "created_at": to_utc_z(self.created_at),
            "claimed_at": to_utc_z(self.claimed_at),
            "processed_at": to_utc_z(self.processed_at),
        }

from __future__ import annotations

from ..extensions import db
from ironpress.time_utils import to_utc_z, utcnow
from .catalog import money_str
from .tenancy import new_id


BILL_STATUSES = ("PENDING", "READY", "COMPLETED", "CANCELLED")
PAYMENT_STATUSES = ("PENDING", "PAID")
PAYMENT_METHODS = ("CASH", "ONLINE", "UPI", "OTHER")


class Bill(db.Model):
    """
    Laundry bill (invoice) for one customer.

    WHY: Bills are the unit of work for the shop. total_amount is always the
    sum of the persisted item subtotals; items are written once, together
    with the bill, and never modified afterwards.

    STATUS FLOW:
    - PENDING -> READY -> COMPLETED (completed_at stamped)
    - any -> CANCELLED
    Payment status is tracked independently (PENDING / PAID).
    """
    __tablename__ = "bills"
    __table_args__ = (
        db.UniqueConstraint("store_id", "bill_number", name="uq_bills_store_number"),
        db.Index("ix_bills_store_created", "store_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    bill_number = db.Column(db.String(32), nullable=False, index=True)
    customer_id = db.Column(db.String(36), db.ForeignKey("customers.id"), nullable=False, index=True)

    total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="PENDING", index=True)
    payment_status = db.Column(db.String(16), nullable=False, default="PENDING")
    payment_method = db.Column(db.String(16), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Customers with bills cannot be deleted on their own; store deletion removes both
    customer = db.relationship("Customer", backref=db.backref("bills", lazy=True, passive_deletes="all"))
    items = db.relationship(
        "BillItem",
        backref="bill",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="BillItem.created_at",
    )
    notifications = db.relationship(
        "Notification",
        backref="bill",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Notification.created_at.desc()",
    )
    notification_jobs = db.relationship("NotificationJob", backref="bill", lazy=True, cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Bill id={self.id} number={self.bill_number} status={self.status}>"

    def to_dict(
        self,
        include_items: bool = True,
        include_customer: bool = True,
        include_notifications: bool = False,
    ) -> dict:
        data = {
            "id": self.id,
            "store_id": self.store_id,
            "bill_number": self.bill_number,
            "customer_id": self.customer_id,
            "total_amount": money_str(self.total_amount),
            "status": self.status,
            "payment_status": self.payment_status,
            "payment_method": self.payment_method,
            "notes": self.notes,
            "completed_at": to_utc_z(self.completed_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_customer:
            data["customer"] = self.customer.to_dict() if self.customer else None
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        if include_notifications:
            data["notifications"] = [n.to_dict() for n in self.notifications]
        return data


class BillItem(db.Model):
    """Priced line: price is a snapshot of the category price at bill creation."""
    __tablename__ = "bill_items"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    bill_id = db.Column(db.String(36), db.ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = db.Column(db.String(36), db.ForeignKey("categories.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    subtotal = db.Column(db.Numeric(10, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    category = db.relationship("Category")

    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_bill_items_quantity_positive"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bill_id": self.bill_id,
            "category_id": self.category_id,
            "category": (
                {"id": self.category.id, "name": self.category.name, "icon": self.category.icon}
                if self.category else None
            ),
            "quantity": self.quantity,
            "price": money_str(self.price),
            "subtotal": money_str(self.subtotal),
        }


class BillSequence(db.Model):
    """
    Per-store, per-day bill number counter.

    next_number is the suffix the next allocation will hand out.
    """
    __tablename__ = "bill_sequences"
    __table_args__ = (
        db.UniqueConstraint("store_id", "sequence_date", name="uq_bill_sequences_store_date"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    sequence_date = db.Column(db.Date, nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "sequence_date": self.sequence_date.isoformat() if self.sequence_date else None,
            "next_number": self.next_number,
        }

from __future__ import annotations

import uuid

from ..extensions import db
from ironpress.time_utils import to_utc_z, utcnow


def new_id() -> str:
    return str(uuid.uuid4())


class Store(db.Model):
    """
    Tenant root: every laundry shop is a Store.

    All customers, categories, bills, settings and users belong to exactly
    one store, and every query touching them is scoped by store_id.

    LIFECYCLE:
    - Registered: is_approved=False, is_active=True
    - Approved by a super admin: users may log in, default catalog seeded
    - Deactivated (soft, with reason) or deleted (hard, cascades)
    """
    __tablename__ = "stores"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.Text, nullable=True)
    city = db.Column(db.String(120), nullable=True)
    state = db.Column(db.String(120), nullable=True)
    pincode = db.Column(db.String(16), nullable=True)
    gst_number = db.Column(db.String(32), nullable=True)

    is_approved = db.Column(db.Boolean, nullable=False, default=False, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    deactivation_reason = db.Column(db.Text, nullable=True)
    deactivated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    settings = db.relationship("StoreSetting", backref="store", lazy=True, cascade="all, delete-orphan")
    users = db.relationship("User", backref="store", lazy=True, cascade="all, delete-orphan")
    customers = db.relationship("Customer", backref="store", lazy=True, cascade="all, delete-orphan")
    categories = db.relationship("Category", backref="store", lazy=True, cascade="all, delete-orphan")
    bills = db.relationship("Bill", backref="store", lazy=True, cascade="all, delete-orphan")
    bill_sequences = db.relationship("BillSequence", lazy=True, cascade="all, delete-orphan")
    sessions = db.relationship("SessionToken", lazy=True, cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
            "gst_number": self.gst_number,
            "is_approved": self.is_approved,
            "is_active": self.is_active,
            "deactivation_reason": self.deactivation_reason,
            "deactivated_at": to_utc_z(self.deactivated_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StoreSetting(db.Model):
    """
    String-encoded per-store configuration value.

    Keys and types are governed by ironpress.settings_catalog; booleans
    are stored as "true"/"false".
    """
    __tablename__ = "store_settings"
    __table_args__ = (
        db.UniqueConstraint("store_id", "key", name="uq_store_settings_store_key"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    key = db.Column(db.String(128), nullable=False)
    value = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "key": self.key,
            "value": self.value,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

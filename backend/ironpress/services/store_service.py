# Overview: Store (tenant) registration and lifecycle.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from flask import current_app

from ..errors import ConflictError, DuplicateResourceError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Store, User
from ..models.auth import ROLE_ADMIN
from ..time_utils import utcnow
from . import auth_service, category_service, session_service, settings_service
from .concurrency import lock_for_update, run_with_retry


STORE_FIELDS = ("name", "email", "phone", "address", "city", "state", "pincode", "gst_number")


def _clean(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def register_store(data: dict) -> tuple[Store, User]:
    """
    Register a store with its ADMIN user and default settings.

    The store starts unapproved; its users cannot log in until a super
    admin approves it. Everything is written in one transaction.
    """
    data = data or {}
    store_fields = {f: _clean(data.get(f)) for f in STORE_FIELDS}
    if not store_fields["name"] or not store_fields["email"]:
        raise ValidationError("name and email are required")
    store_fields["email"] = store_fields["email"].lower()

    admin_email = (_clean(data.get("admin_email")) or store_fields["email"]).lower()
    admin_name = _clean(data.get("admin_name")) or store_fields["name"]
    password = data.get("password") or ""

    if db.session.query(Store.id).filter(Store.email == store_fields["email"]).first():
        raise DuplicateResourceError("Store with this email already exists", {"email": store_fields["email"]})

    try:
        store = Store(is_approved=False, is_active=True, **store_fields)
        db.session.add(store)
        db.session.flush()

        admin = auth_service.create_user(
            name=admin_name,
            email=admin_email,
            password=password,
            role=ROLE_ADMIN,
            store_id=store.id,
            commit=False,
        )
        settings_service.seed_default_settings(store.id, commit=False)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateResourceError("Store or admin email already exists")
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Registered store %s (%s), pending approval", store.id, store.name)
    return store, admin


def list_stores(include_inactive: bool = True) -> list[Store]:
    query = db.session.query(Store)
    if not include_inactive:
        query = query.filter(Store.is_active.is_(True))
    return query.order_by(Store.created_at.desc()).all()


def get_store(store_id: str) -> Store:
    store = db.session.get(Store, store_id)
    if not store:
        raise NotFoundError("Store not found", {"store_id": store_id})
    return store


def update_store(store_id: str, data: dict) -> Store:
    """Update profile fields of a store. Unknown keys are ignored."""
    data = data or {}
    store = get_store(store_id)
    changes = {f: _clean(data[f]) for f in STORE_FIELDS if f in data}
    if not changes:
        raise ValidationError("No store fields to update", {"allowed": list(STORE_FIELDS)})
    if "name" in changes and not changes["name"]:
        raise ValidationError("name cannot be empty")
    if "email" in changes:
        if not changes["email"]:
            raise ValidationError("email cannot be empty")
        changes["email"] = changes["email"].lower()
        taken = (
            db.session.query(Store.id)
            .filter(Store.email == changes["email"], Store.id != store.id)
            .first()
        )
        if taken:
            raise DuplicateResourceError("Store with this email already exists", {"email": changes["email"]})

    for field, value in changes.items():
        setattr(store, field, value)
    db.session.commit()
    current_app.logger.info("Updated store %s (%s)", store.id, ", ".join(sorted(changes)))
    return store


def approve_store(store_id: str) -> Store:
    """Approve a store and seed the default catalog if it has none."""
    def _op():
        store = lock_for_update(db.session.query(Store).filter_by(id=store_id)).first()
        if not store:
            raise NotFoundError("Store not found", {"store_id": store_id})
        store.is_approved = True
        seeded = category_service.seed_default_categories(store.id, commit=False)
        db.session.commit()
        current_app.logger.info("Approved store %s (seeded %d categories)", store.id, seeded)
        return store

    return run_with_retry(_op)


def toggle_store_status(store_id: str, reason: str | None = None) -> Store:
    """
    Flip is_active. Deactivation requires a reason and revokes the
    store's sessions; reactivation clears the reason.
    """
    def _op():
        store = lock_for_update(db.session.query(Store).filter_by(id=store_id)).first()
        if not store:
            raise NotFoundError("Store not found", {"store_id": store_id})

        if store.is_active:
            if not _clean(reason):
                raise ValidationError("A reason is required to deactivate a store")
            store.is_active = False
            store.deactivation_reason = _clean(reason)
            store.deactivated_at = utcnow()
            session_service.revoke_store_sessions(store.id, "Store deactivated")
        else:
            store.is_active = True
            store.deactivation_reason = None
            store.deactivated_at = None
        db.session.commit()
        return store

    return run_with_retry(_op)


def delete_store(store_id: str) -> None:
    """Hard delete; cascades to everything the store owns."""
    store = get_store(store_id)
    db.session.delete(store)
    db.session.commit()
    current_app.logger.info("Deleted store %s", store_id)


def reject_store(store_id: str) -> None:
    """Turn down a pending registration; the store and its admin are removed."""
    store = get_store(store_id)
    if store.is_approved:
        raise ConflictError("Only stores pending approval can be rejected", {"store_id": store_id})
    email = store.email
    db.session.delete(store)
    db.session.commit()
    current_app.logger.info("Rejected store registration %s (%s)", store_id, email)

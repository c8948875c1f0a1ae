# Overview: Staff accounts of a store: listing, employee creation, activation and removal.

"""
Store User Management

Store admins manage the EMPLOYEE accounts of their own store. A user of
another store is reported as not found. Deactivating a user revokes their
sessions immediately.
"""

from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import User
from ..models.auth import ROLE_EMPLOYEE
from . import auth_service, session_service
from .concurrency import lock_for_update, run_with_retry


def list_store_users(store_id: str, include_inactive: bool = True) -> list[User]:
    query = db.session.query(User).filter(User.store_id == store_id)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    return query.order_by(User.created_at.desc()).all()


def _get_store_user(user_id: str, store_id: str | None) -> User:
    query = db.session.query(User).filter(User.id == user_id)
    if store_id:
        query = query.filter(User.store_id == store_id)
    user = query.first()
    if not user or user.is_super_admin:
        raise NotFoundError("User not found", {"user_id": user_id})
    return user


def create_employee(store_id: str, data: dict) -> User:
    """Create an active EMPLOYEE in `store_id`. Email is unique platform-wide."""
    if not store_id:
        raise ValidationError("store_id is required")
    data = data or {}
    if not data.get("password"):
        raise ValidationError("password is required")
    employee = auth_service.create_user(
        name=data.get("name"),
        email=data.get("email"),
        password=data.get("password"),
        role=ROLE_EMPLOYEE,
        store_id=store_id,
    )
    current_app.logger.info("Created employee %s in store %s", employee.id, store_id)
    return employee


def toggle_user_status(user_id: str, store_id: str | None, acting_user_id: str) -> tuple[User, int]:
    """
    Flip is_active for a store user.

    Returns (user, sessions_revoked). Users cannot deactivate themselves.
    """
    if user_id == acting_user_id:
        raise ValidationError("Cannot deactivate your own account")

    def _op():
        user = lock_for_update(db.session.query(User).filter(User.id == user_id)).first()
        if not user or user.is_super_admin or (store_id and user.store_id != store_id):
            raise NotFoundError("User not found", {"user_id": user_id})

        revoked = 0
        if user.is_active:
            user.is_active = False
            revoked = session_service.revoke_user_sessions(user.id, "Account deactivated by admin")
        else:
            user.is_active = True
        db.session.commit()
        current_app.logger.info(
            "User %s %s (%d sessions revoked)", user.id, "activated" if user.is_active else "deactivated", revoked
        )
        return user, revoked

    return run_with_retry(_op)


def delete_employee(user_id: str, store_id: str | None) -> None:
    """Hard delete an EMPLOYEE; admins are not removable here."""
    user = _get_store_user(user_id, store_id)
    if user.role != ROLE_EMPLOYEE:
        raise NotFoundError("Employee not found", {"user_id": user_id})
    db.session.delete(user)
    db.session.commit()
    current_app.logger.info("Deleted employee %s", user_id)

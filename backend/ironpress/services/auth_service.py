# Overview: Password hashing, user creation and login checks.

"""
Authentication Service

Uses bcrypt for password hashing and validates password strength.

Login rules:
- SUPER_ADMIN users have no store and may always log in while active.
- Store users may log in only while their store is approved and active.
"""

import re

import bcrypt
from flask import current_app

from ..errors import AuthenticationError, DuplicateResourceError, ValidationError
from ..extensions import db
from ..models import Store, User
from ..models.auth import ROLE_SUPER_ADMIN, ROLES
from ..time_utils import utcnow
from . import session_service


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt (cost from BCRYPT_ROUNDS)."""
    validate_password_strength(password)
    rounds = int(current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except (ValueError, TypeError):
        return False


def create_user(
    *,
    name: str,
    email: str,
    password: str,
    role: str,
    store_id: str | None = None,
    commit: bool = True,
) -> User:
    """
    Create a user with a bcrypt password hash.

    SUPER_ADMIN users must not have a store; every other role must.
    """
    email = (email or "").strip().lower()
    name = (name or "").strip()
    role = (role or "").strip().upper()
    if not email or not name:
        raise ValidationError("name and email are required")
    if role not in ROLES:
        raise ValidationError("Invalid role", {"role": role, "allowed": list(ROLES)})
    if role == ROLE_SUPER_ADMIN and store_id:
        raise ValidationError("Super admins cannot belong to a store")
    if role != ROLE_SUPER_ADMIN and not store_id:
        raise ValidationError("store_id is required for store users")

    if db.session.query(User.id).filter(User.email == email).first():
        raise DuplicateResourceError("User with this email already exists", {"email": email})

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        store_id=store_id,
        is_active=True,
    )
    db.session.add(user)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return user


def authenticate(email: str, password: str) -> User:
    """
    Check credentials and the account's store state.

    Returns the User and stamps last_login_at. Raises AuthenticationError
    with a caller-safe message otherwise.
    """
    email = (email or "").strip().lower()
    user = db.session.query(User).filter(User.email == email).first()

    if not user or not verify_password(password or "", user.password_hash):
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    if not user.is_super_admin:
        store = db.session.get(Store, user.store_id) if user.store_id else None
        if not store:
            raise AuthenticationError("Account is not linked to a store")
        if not store.is_approved:
            raise AuthenticationError("Store is pending approval")
        if not store.is_active:
            raise AuthenticationError(
                "Store is deactivated",
                {"reason": store.deactivation_reason} if store.deactivation_reason else None,
            )

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def update_profile(user: User, data: dict) -> User:
    """Only the display name is self-editable."""
    name = ((data or {}).get("name") or "").strip()
    if not name:
        raise ValidationError("name is required")
    user.name = name
    db.session.commit()
    return user


def change_password(user: User, current_password: str, new_password: str, keep_session_id: str | None = None) -> int:
    """
    Replace the user's password after checking the current one.

    Every other session of the user is revoked; returns how many.
    """
    if not current_password or not new_password:
        raise ValidationError("current_password and new_password are required")
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")

    user.password_hash = hash_password(new_password)
    revoked = session_service.revoke_user_sessions(user.id, "Password changed", keep_session_id=keep_session_id)
    db.session.commit()
    current_app.logger.info("Password changed for user %s (%d sessions revoked)", user.id, revoked)
    return revoked

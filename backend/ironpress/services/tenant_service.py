"""
Tenant scoping helpers.

Every authenticated request carries g.store_id from its session. Store
users are pinned to that store; super admins have no store and may act on
any store named in the request.

USAGE:
    store_id = resolve_store_scope(request.args.get("store_id"))
"""

from flask import g

from ..errors import PermissionDeniedError, ValidationError


def get_current_store_id() -> str | None:
    return getattr(g, "store_id", None)


def is_super_admin() -> bool:
    user = getattr(g, "current_user", None)
    return bool(user and user.is_super_admin)


def resolve_store_scope(requested_store_id: str | None = None, *, required: bool = True) -> str | None:
    """
    Store id a request may operate on.

    - Store users: always their own store; naming another store is denied.
    - Super admins: the requested store, or None (platform-wide) when
      `required` is False.
    """
    if is_super_admin():
        if requested_store_id:
            return requested_store_id
        if required:
            raise ValidationError("store_id is required")
        return None

    own_store_id = get_current_store_id()
    if not own_store_id:
        raise PermissionDeniedError("Tenant context not established")
    if requested_store_id and requested_store_id != own_store_id:
        raise PermissionDeniedError("Cross-store access denied")
    return own_store_id


def require_same_store(store_id: str) -> None:
    """Store users may only touch their own store; super admins any."""
    if is_super_admin():
        return
    if get_current_store_id() != store_id:
        raise PermissionDeniedError("Cross-store access denied")

"""
Domain error taxonomy.

Every error raised by the service layer for a caller-visible reason derives
from IronPressError and carries the HTTP status the routes answer with.
Provider failures never leave the notification dispatcher.
"""

from __future__ import annotations


class IronPressError(Exception):
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(IronPressError):
    """400-level input problem."""
    status_code = 400


class NoValidItemsError(ValidationError):
    def __init__(self, message: str = "At least one item is required", details: dict | None = None):
        super().__init__(message, details)


class NotFoundError(IronPressError):
    status_code = 404


class CategoryNotFoundError(NotFoundError):
    # Bad line-item input, not a missing route resource
    status_code = 400

    def __init__(self, category_id: str):
        super().__init__("Category not found or inactive", {"category_id": category_id})


class CrossTenantAccessError(IronPressError):
    status_code = 403


class CategoryCrossTenantError(CrossTenantAccessError):
    def __init__(self, category_id: str):
        super().__init__("Category does not belong to your store", {"category_id": category_id})


class DuplicateResourceError(IronPressError):
    """409-level unique-constraint violation."""
    status_code = 409


class ConflictError(IronPressError):
    """409-level business rule conflict (e.g., deleting a category in use)."""
    status_code = 409


class AuthenticationError(IronPressError):
    status_code = 401


class PermissionDeniedError(IronPressError):
    status_code = 403


class ProviderError(Exception):
    """Raised by messaging providers; converted to a failed attempt by the dispatcher."""

"""
Typed catalog of per-store settings.

Each row describes one canonical key: its value type, default, whether the
value is a secret (masked on read), and the legacy key names older clients
and databases used for it. Values are persisted as strings in
store_settings; booleans as "true"/"false".
"""

from __future__ import annotations

SETTINGS_SCHEMA_VERSION = 2

# Stored per store so migrate_legacy_settings is idempotent.
SCHEMA_VERSION_KEY = "system.settings_schema_version"

SETTINGS_CATALOG = [
    # Notifications
    {
        "key": "notifications.email.enabled",
        "type": "bool",
        "default": True,
        "category": "notifications",
        "legacy_keys": ["emailNotificationsEnabled", "notifications_email_enabled"],
        "description": "Send bill notifications by email.",
    },
    {
        "key": "notifications.sms.enabled",
        "type": "bool",
        "default": False,
        "category": "notifications",
        "legacy_keys": ["smsNotificationsEnabled", "notifications_sms_enabled"],
        "description": "Send bill notifications by SMS.",
    },
    {
        "key": "notifications.whatsapp.enabled",
        "type": "bool",
        "default": False,
        "category": "notifications",
        "legacy_keys": ["whatsappNotificationsEnabled", "notifications_whatsapp_enabled"],
        "description": "Send bill notifications by WhatsApp.",
    },
    # Store
    {
        "key": "store.currency",
        "type": "string",
        "default": "INR",
        "category": "store",
        "legacy_keys": ["currency"],
        "validation": {"regex": r"^[A-Z]{3}$"},
        "description": "ISO 4217 currency code used on bills and messages.",
    },
    {
        "key": "store.tax_rate",
        "type": "decimal",
        "default": 0.0,
        "category": "store",
        "legacy_keys": ["taxRate"],
        "validation": {"min": 0, "max": 100},
        "description": "Tax rate percentage.",
    },
    # Payment details printed in notifications
    {"key": "payment.upi_id", "type": "string", "default": None, "category": "payment", "legacy_keys": ["upiId"]},
    {"key": "payment.payee_name", "type": "string", "default": None, "category": "payment", "legacy_keys": ["payeeName"]},
    {"key": "payment.bank_account_name", "type": "string", "default": None, "category": "payment", "legacy_keys": []},
    {"key": "payment.bank_account_number", "type": "string", "default": None, "category": "payment", "legacy_keys": []},
    {"key": "payment.bank_ifsc", "type": "string", "default": None, "category": "payment", "legacy_keys": []},
    # Email provider (falls back to SMTP_* app config)
    {"key": "email.smtp_host", "type": "string", "default": None, "category": "email", "legacy_keys": []},
    {
        "key": "email.smtp_port",
        "type": "int",
        "default": None,
        "category": "email",
        "legacy_keys": [],
        "validation": {"min": 1, "max": 65535},
    },
    {"key": "email.smtp_user", "type": "string", "default": None, "category": "email", "legacy_keys": []},
    {
        "key": "email.smtp_password",
        "type": "string",
        "default": None,
        "category": "email",
        "legacy_keys": [],
        "is_sensitive": True,
    },
    {"key": "email.from_address", "type": "string", "default": None, "category": "email", "legacy_keys": []},
    # Twilio (falls back to TWILIO_* app config)
    {"key": "sms.twilio_account_sid", "type": "string", "default": None, "category": "sms", "legacy_keys": []},
    {
        "key": "sms.twilio_auth_token",
        "type": "string",
        "default": None,
        "category": "sms",
        "legacy_keys": [],
        "is_sensitive": True,
    },
    {"key": "sms.from_number", "type": "string", "default": None, "category": "sms", "legacy_keys": []},
    {"key": "whatsapp.from_number", "type": "string", "default": None, "category": "whatsapp", "legacy_keys": []},
]

CATALOG_BY_KEY = {row["key"]: row for row in SETTINGS_CATALOG}

LEGACY_KEY_MAP = {
    legacy: row["key"]
    for row in SETTINGS_CATALOG
    for legacy in row.get("legacy_keys", [])
}

SENSITIVE_MASK = "********"


def canonical_key(key: str) -> str | None:
    """Return the canonical key for a canonical or legacy name, else None."""
    if key in CATALOG_BY_KEY:
        return key
    return LEGACY_KEY_MAP.get(key)


def channel_toggle_key(channel: str) -> str:
    return f"notifications.{channel.lower()}.enabled"

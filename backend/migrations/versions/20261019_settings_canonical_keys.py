"""rename legacy store setting keys to canonical dotted keys

Revision ID: 20261019_settings_canonical
Revises: 20261019_initial_schema
Create Date: 2026-10-19 09:30:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.sql import column, table


# revision identifiers, used by Alembic.
revision = "20261019_settings_canonical"
down_revision = "20261019_initial_schema"
branch_labels = None
depends_on = None


# Snapshot of the catalog legacy keys at this revision.
LEGACY_KEYS = {
    "emailNotificationsEnabled": "notifications.email.enabled",
    "notifications_email_enabled": "notifications.email.enabled",
    "smsNotificationsEnabled": "notifications.sms.enabled",
    "notifications_sms_enabled": "notifications.sms.enabled",
    "whatsappNotificationsEnabled": "notifications.whatsapp.enabled",
    "notifications_whatsapp_enabled": "notifications.whatsapp.enabled",
    "currency": "store.currency",
    "taxRate": "store.tax_rate",
    "upiId": "payment.upi_id",
    "payeeName": "payment.payee_name",
}

SCHEMA_VERSION_KEY = "system.settings_schema_version"

store_settings = table(
    "store_settings",
    column("id", sa.String),
    column("store_id", sa.String),
    column("key", sa.String),
    column("value", sa.Text),
)


def _to_bool_text(value):
    if value is None:
        return None
    return "true" if str(value).strip().lower() in {"1", "true", "yes", "on"} else "false"


def upgrade():
    bind = op.get_bind()
    rows = bind.execute(sa.select(store_settings.c.id, store_settings.c.store_id, store_settings.c.key, store_settings.c.value)).fetchall()

    existing = {(r.store_id, r.key) for r in rows}
    for row in rows:
        canon = LEGACY_KEYS.get(row.key)
        if not canon:
            continue
        if (row.store_id, canon) in existing:
            # Canonical row wins; drop the stale legacy duplicate.
            bind.execute(store_settings.delete().where(store_settings.c.id == row.id))
            continue
        value = row.value
        if canon.endswith(".enabled"):
            value = _to_bool_text(value)
        bind.execute(
            store_settings.update()
            .where(store_settings.c.id == row.id)
            .values(key=canon, value=value)
        )
        existing.add((row.store_id, canon))

    bind.execute(
        store_settings.update()
        .where(store_settings.c.key == SCHEMA_VERSION_KEY)
        .values(value="2")
    )


def downgrade():
    # Renames are not reversed; the service still reads legacy keys.
    pass

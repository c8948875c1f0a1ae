"""add claimed_at to notification jobs

Revision ID: 20261020_job_claimed_at
Revises: 20261019_settings_canonical
Create Date: 2026-10-20 08:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261020_job_claimed_at"
down_revision = "20261019_settings_canonical"
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table("notification_jobs", schema=None) as batch_op:
        batch_op.add_column(sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True))


def downgrade():
    with op.batch_alter_table("notification_jobs", schema=None) as batch_op:
        batch_op.drop_column("claimed_at")

"""create notification preferences table

Revision ID: 0002_create_notification_preferences
Revises: 0001_create_notifications
Create Date: 2025-01-20
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0002_create_notification_preferences"
down_revision = "0001_create_notifications"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "notification_preferences",
        sa.Column("owner_id", sa.String(length=64), primary_key=True),
        sa.Column("inapp_booking", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("inapp_payment", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("inapp_property", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("inapp_message", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("inapp_system", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sound_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("notification_preferences")

"""add attendance event timestamps and payment idempotency keys

Revision ID: 20261018_01
Revises: 20261018_00
Create Date: 2026-10-18 11:40:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_01"
down_revision = "20261018_00"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "attendance",
        sa.Column("event_timestamp", sa.DateTime(timezone=True), nullable=True),
    )
    op.execute("UPDATE attendance SET event_timestamp = check_in_time WHERE event_timestamp IS NULL")
    op.alter_column("attendance", "event_timestamp", nullable=False)

    op.add_column(
        "payments",
        sa.Column("client_event_id", sa.String(length=100), nullable=True),
    )
    op.create_unique_constraint(
        "uq_payments_student_client_event",
        "payments",
        ["student_id", "client_event_id"],
    )


def downgrade() -> None:
    op.drop_constraint("uq_payments_student_client_event", "payments", type_="unique")
    op.drop_column("payments", "client_event_id")
    op.drop_column("attendance", "event_timestamp")

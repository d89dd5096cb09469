"""Create the intake_progress table.

One row per user holding the onboarding answers (``responses``), the
per-phase completion flags (``phase_status``) and per-field answer
timestamps (``answered_at``).

Revision ID: 20261001_intake_progress
Revises:
Create Date: 2026-10-01
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261001_intake_progress"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "intake_progress",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column(
            "current_phase",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'phase_1'"),
        ),
        sa.Column("responses", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("phase_status", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("answered_at", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", name="uq_intake_progress_user_id"),
        sa.CheckConstraint(
            "current_phase IN ('phase_1', 'phase_2', 'phase_3', 'complete')",
            name="ck_intake_phase",
        ),
    )
    op.create_index("ix_intake_updated_at", "intake_progress", ["updated_at"])


def downgrade() -> None:
    op.drop_index("ix_intake_updated_at", table_name="intake_progress")
    op.drop_table("intake_progress")

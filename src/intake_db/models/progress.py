"""IntakeProgress ORM model — one row per user's onboarding intake.

JSON columns (JSONB on PostgreSQL) hold the answer map and per-phase
flags so the whole progress record loads and saves as a single row.
Column types are portable; the Alembic migration targets PostgreSQL.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, CheckConstraint, DateTime, Index, String, Text, Uuid, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from intake_db.models.base import Base

# JSONB on PostgreSQL, plain JSON elsewhere
JsonDocument = JSON().with_variant(JSONB(), "postgresql")


class IntakeProgress(Base):
    """Persistent form of ``intake_engine.models.ProgressRecord``."""

    __tablename__ = "intake_progress"

    # --- Primary key ---
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Identity ---
    # External user ID; the session key of the progress record
    user_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    # --- Progress ---
    current_phase: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="phase_1",
        server_default=text("'phase_1'"),
    )
    # field_name -> answer value
    responses: Mapped[dict] = mapped_column(
        JsonDocument,
        nullable=False,
        default=dict,
    )
    # phase -> {"complete": bool, "completed_at": ISO8601 | null}
    phase_status: Mapped[dict] = mapped_column(
        JsonDocument,
        nullable=False,
        default=dict,
    )
    # field_name -> ISO8601 of the latest submission
    answered_at: Mapped[dict] = mapped_column(
        JsonDocument,
        nullable=False,
        default=dict,
    )

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint(
            "current_phase IN ('phase_1', 'phase_2', 'phase_3', 'complete')",
            name="ck_intake_phase",
        ),
        # Accelerates idle-record eviction
        Index("ix_intake_updated_at", "updated_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<IntakeProgress(id={self.id!s}, user={self.user_id!r}, "
            f"phase={self.current_phase!r})>"
        )

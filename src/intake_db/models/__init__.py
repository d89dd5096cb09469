"""ORM models for intake_db."""

from intake_db.models.base import Base
from intake_db.models.progress import IntakeProgress

__all__ = ["Base", "IntakeProgress"]

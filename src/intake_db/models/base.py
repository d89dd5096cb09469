"""Declarative base for intake_db tables."""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Matches the constraint names the migrations create
NAMING_CONVENTION = {
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ix": "ix_%(column_0_label)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)

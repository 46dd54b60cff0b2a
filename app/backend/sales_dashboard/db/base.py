"""Declarative base shared by ORM entities and migrations."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for ORM entities."""

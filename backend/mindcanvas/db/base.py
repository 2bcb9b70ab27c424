"""Declarative base for the saved-projects schema; alembic and create_schema read its metadata."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass

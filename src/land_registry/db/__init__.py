"""Database layer for the land registry (SQLAlchemy 2.0 async)."""

from __future__ import annotations

from land_registry.db.base import Base
from land_registry.db.engine import DatabaseManager

__all__ = ["Base", "DatabaseManager"]

"""SQLAlchemy 2.0 declarative models for the configuration store.

The provisioner only ever reads `repository_configs`; rows are written by
whoever onboards a repository (an operator, a migration, a separate admin
tool). Uses dialect-agnostic types (JSON, Text) so the model works with
both PostgreSQL (production) and SQLite (tests).
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class RepositoryConfig(Base):
    """Per-repository CI/CD customisation, keyed by `owner/repo`."""

    __tablename__ = "repository_configs"

    full_name: Mapped[str] = mapped_column(Text, primary_key=True)
    config: Mapped[Any] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

"""SQLAlchemy ORM table definitions for the snapshot store.

Snapshots are stored row-per-model, tagged with the capture time; a
snapshot is every row sharing one tag. Change events are append-only.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON
from sqlalchemy import DateTime
from sqlalchemy import Index
from sqlalchemy import Integer
from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.orm import Mapped
from sqlalchemy.orm import mapped_column


class Base(DeclarativeBase):
    """Shared declarative base for orw tables."""


class ModelSnapshotTable(Base):
    """One model as seen in one capture round."""

    __tablename__ = "models"

    row_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    model_id: Mapped[str] = mapped_column(String(256), nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    __table_args__ = (
        Index("ix_models_timestamp", "timestamp"),
        Index("ix_models_model_id", "model_id"),
    )


class ChangeTable(Base):
    """One detected change event."""

    __tablename__ = "changes"

    row_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    model_id: Mapped[str] = mapped_column(String(256), nullable=False)
    change_type: Mapped[str] = mapped_column(String(16), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    __table_args__ = (
        Index("ix_changes_timestamp", "timestamp"),
        Index("ix_changes_model_id", "model_id"),
    )

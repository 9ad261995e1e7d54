"""SQLAlchemy ORM models."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class SummaryModel(Base):
    """SQLAlchemy model for summaries table."""

    __tablename__ = "summaries"
    __table_args__ = (
        Index("ix_summaries_created_at", "created_at"),
        Index("ix_summaries_is_saved", "is_saved"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    original_text: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    is_saved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

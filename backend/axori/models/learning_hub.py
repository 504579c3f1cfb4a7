"""Per-user learning hub progress and bookmarks (durable side)."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from axori.database import Base, utcnow


class LearningProgress(Base):
    __tablename__ = "user_learning_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "content_type", "content_slug", name="uq_learning_progress_item"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    content_type: Mapped[str] = mapped_column(String(20), nullable=False)
    content_slug: Mapped[str] = mapped_column(String(255), nullable=False)
    # viewed | in_progress | completed
    status: Mapped[str] = mapped_column(String(20), default="viewed")
    progress_data: Mapped[dict | None] = mapped_column(JSON, default=None)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class LearningBookmark(Base):
    __tablename__ = "user_learning_bookmarks"
    __table_args__ = (
        UniqueConstraint("user_id", "content_type", "content_slug", name="uq_learning_bookmark_item"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    content_type: Mapped[str] = mapped_column(String(20), nullable=False)
    content_slug: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

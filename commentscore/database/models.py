"""
commentscore.database.models — SQLAlchemy 2.0 Data Models
==========================================================

Tables:
- comments        — One row per (channel, message); keyed ``"{channel}-{message_id}"``
- leaders         — Per-(channel, sender) running score; keyed ``"{channel}-{sender_id}"``
- module_settings — Singleton module configuration (``id = 1``)
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

SETTINGS_SINGLETON_ID = 1


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ModuleStatus(enum.StrEnum):
    """Operational status of the rating module."""
    DISABLED = "disable"   # module switched off
    WAITING = "waiting"    # collecting comments until the next evaluation
    IN_WORK = "inwork"     # evaluation running, see ``job_id``


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------
def comment_key(channel: str, message_id: str) -> str:
    """``"{channel}-{message_id}"``.  Not injective when ids contain ``-``
    (``("a-b", "c")`` and ``("a", "b-c")`` share a key); a known limit of the
    wire-compatible key format."""
    return f"{channel}-{message_id}"


def leader_key(channel: str, sender_id: str) -> str:
    """``"{channel}-{sender_id}"``, with the same ``-`` ambiguity as
    :func:`comment_key`."""
    return f"{channel}-{sender_id}"


# ---------------------------------------------------------------------------
# Comments — one row per ingested (or rated) message
# ---------------------------------------------------------------------------
class Comment(Base):
    """A comment posted under a thread, plus its current rating.

    ``version`` is bumped on every score change and guards the
    compare-and-set in the rating engine.
    """
    __tablename__ = "comments"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    channel: Mapped[str] = mapped_column(String(100), nullable=False)
    thread_id: Mapped[str | None] = mapped_column(String(100), default=None)
    thread_text: Mapped[str | None] = mapped_column(Text, default=None)
    sender_id: Mapped[str] = mapped_column(String(100), nullable=False)
    message_id: Mapped[str] = mapped_column(String(100), nullable=False)
    message_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    score: Mapped[float | None] = mapped_column(Float, default=None)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_comments_channel_sender", "channel", "sender_id"),
        Index("ix_comments_channel_thread", "channel", "thread_id"),
    )

    def __repr__(self) -> str:
        return f"<Comment key={self.key!r} sender={self.sender_id!r} score={self.score}>"


# ---------------------------------------------------------------------------
# Leaders — accumulated score per member per channel
# ---------------------------------------------------------------------------
class Leader(Base):
    __tablename__ = "leaders"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    channel: Mapped[str] = mapped_column(String(100), nullable=False)
    sender_id: Mapped[str] = mapped_column(String(100), nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_leaders_channel_score", "channel", "score"),
    )

    def __repr__(self) -> str:
        return f"<Leader key={self.key!r} score={self.score}>"


# ---------------------------------------------------------------------------
# ModuleSettings — singleton configuration row
# ---------------------------------------------------------------------------
class ModuleSettings(Base):
    """Module-wide configuration.

    Exactly one row (``id = 1``) exists; it is created lazily by
    :func:`~commentscore.services.settings_service.get_module_settings`.
    ``job_id`` is meaningful only while ``status`` is ``inwork``.
    """
    __tablename__ = "module_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SETTINGS_SINGLETON_ID)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ModuleStatus.DISABLED.value
    )
    job_id: Mapped[int | None] = mapped_column(Integer, default=None)
    threads: Mapped[list] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list
    )
    launch_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    # Salebot credentials
    project_id: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    api_key: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    __table_args__ = (
        CheckConstraint(f"id = {SETTINGS_SINGLETON_ID}", name="ck_module_settings_singleton"),
        CheckConstraint(
            "status IN ('disable', 'waiting', 'inwork')",
            name="ck_module_settings_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<ModuleSettings active={self.active} status={self.status!r}>"

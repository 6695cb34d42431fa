"""SQLAlchemy tables for events, exceptions and completions.

Tables:
- calendar_event: master events and override events (``parent_event_id`` set)
- calendar_event_exception: per-date tombstones and overrides of a master
- calendar_event_task_completion: per-member, per-date task completions
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Declarative base for all calendar tables."""


class EventRow(Base):
    """A stored event; the recurrence rule is kept in flat columns."""

    __tablename__ = "calendar_event"
    __table_args__ = (
        Index("ix_calendar_event_family_start", "family_id", "start_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    family_id: Mapped[str] = mapped_column(String(64), nullable=False)
    parent_event_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("calendar_event.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
        doc="Master event when this row holds override fields",
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    start_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    all_day: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    category_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    participant_ids: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    created_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    recurrence_kind: Mapped[str] = mapped_column(
        String(16), default="none", nullable=False
    )
    recurrence_interval: Mapped[int] = mapped_column(
        Integer, default=1, nullable=False
    )
    recurrence_end_type: Mapped[str] = mapped_column(
        String(16), default="never", nullable=False
    )
    recurrence_until: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    recurrence_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    recurrence_month_day: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    is_task: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    reward_points: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    overrides: Mapped[list["EventRow"]] = relationship(
        back_populates="parent",
        cascade="all, delete-orphan",
    )
    parent: Mapped[Optional["EventRow"]] = relationship(
        back_populates="overrides",
        remote_side=[id],
    )
    exceptions: Mapped[list["EventExceptionRow"]] = relationship(
        back_populates="event",
        foreign_keys="EventExceptionRow.event_id",
        cascade="all, delete-orphan",
        order_by="EventExceptionRow.occurrence_date",
    )
    completions: Mapped[list["CompletionRow"]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
    )


class EventExceptionRow(Base):
    """Tombstone (no modified event) or override for one occurrence date."""

    __tablename__ = "calendar_event_exception"
    __table_args__ = (
        UniqueConstraint("event_id", "occurrence_date", name="uq_exception_event_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    event_id: Mapped[str] = mapped_column(
        ForeignKey("calendar_event.id", ondelete="CASCADE"), nullable=False
    )
    occurrence_date: Mapped[date] = mapped_column(Date, nullable=False)
    modified_event_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("calendar_event.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    event: Mapped[EventRow] = relationship(
        back_populates="exceptions", foreign_keys=[event_id]
    )
    modified_event: Mapped[Optional[EventRow]] = relationship(
        foreign_keys=[modified_event_id]
    )


class CompletionRow(Base):
    """One member's completion of one task occurrence."""

    __tablename__ = "calendar_event_task_completion"
    __table_args__ = (
        UniqueConstraint(
            "event_id", "member_id", "occurrence_date", name="uq_completion_triple"
        ),
        Index("ix_completion_member", "member_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    event_id: Mapped[str] = mapped_column(
        ForeignKey("calendar_event.id", ondelete="CASCADE"), nullable=False
    )
    member_id: Mapped[str] = mapped_column(String(64), nullable=False)
    occurrence_date: Mapped[date] = mapped_column(Date, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    event: Mapped[EventRow] = relationship(back_populates="completions")

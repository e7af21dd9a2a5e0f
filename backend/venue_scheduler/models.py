from __future__ import annotations
from typing import Optional
import datetime as dt

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text, false, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Participant(Base):
    __tablename__ = "participants"

    id:       Mapped[int]  = mapped_column(Integer, primary_key=True, index=True)
    email:    Mapped[str]  = mapped_column(String(320), nullable=False, unique=True)
    event_id: Mapped[int]  = mapped_column(ForeignKey("events.id"), nullable=False, index=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now())

    def __repr__(self) -> str:
        return f"<Participant(id={self.id}, email={self.email}, event_id={self.event_id})>"


class Event(Base):
    __tablename__ = "events"

    id:          Mapped[int]  = mapped_column(Integer, primary_key=True, index=True)
    name:        Mapped[str]  = mapped_column(String(200), nullable=False)
    date:        Mapped[dt.date] = mapped_column(Date, nullable=False)
    start_time:  Mapped[str]  = mapped_column(String(5), nullable=False)   # HH:MM
    end_time:    Mapped[str]  = mapped_column(String(5), nullable=False)
    location:    Mapped[str]  = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_deleted:  Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    created_at:  Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now())
    updated_at:  Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now(), onupdate=_utcnow
    )

    # live roster only; writes go through Participant rows directly
    participants: Mapped[list[Participant]] = relationship(
        Participant,
        primaryjoin="and_(Event.id == Participant.event_id, Participant.is_deleted.is_(False))",
        viewonly=True,
        order_by=Participant.id,
    )

    __table_args__ = (
        Index("ix_events_location_date", "location", "date"),
        # storage-level backstop for identical live bookings
        Index(
            "uq_events_live_slot",
            "location", "date", "start_time", "end_time",
            unique=True,
            sqlite_where=text("NOT is_deleted"),
            postgresql_where=text("NOT is_deleted"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name}, {self.location} {self.date} {self.start_time}-{self.end_time})>"

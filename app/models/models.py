from __future__ import annotations

from sqlalchemy import String, DateTime, Integer, Boolean, Text, CheckConstraint, Index, Uuid
from sqlalchemy.orm import declarative_base, Mapped, mapped_column
from datetime import datetime
import uuid

from app.utils.civil_time import utcnow

Base = declarative_base()


class PomodoroSession(Base):
    __tablename__ = 'pomodoro_sessions'

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String, index=True)
    task_id: Mapped[str | None] = mapped_column(String)

    mode: Mapped[str] = mapped_column(String)
    planned_duration_seconds: Mapped[int] = mapped_column(Integer)
    actual_duration_seconds: Mapped[int | None] = mapped_column(Integer)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)

    # Naive UTC timestamps
    started_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint("mode IN ('work', 'short_break', 'long_break')", name='ck_pomodoro_sessions_mode'),
        Index('ix_pomodoro_sessions_user_completed', 'user_id', 'completed_at'),
    )


class StopwatchSession(Base):
    __tablename__ = 'stopwatch_sessions'

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String, index=True)
    task_id: Mapped[str | None] = mapped_column(String)

    duration_seconds: Mapped[int] = mapped_column(Integer)
    started_at: Mapped[datetime] = mapped_column(DateTime)
    ended_at: Mapped[datetime] = mapped_column(DateTime)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint('duration_seconds > 0', name='ck_stopwatch_sessions_duration'),
        Index('ix_stopwatch_sessions_user_started', 'user_id', 'started_at'),
    )

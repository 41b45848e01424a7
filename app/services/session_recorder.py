"""
Session Recorder

Persistence boundary for finished timer sessions and stopwatch blocks.

The timer engine and the analytics service only depend on the
`SessionRecorder` protocol; `SqlSessionRecorder` is the SQLAlchemy-backed
implementation used by the API.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, List, Optional, Protocol

from sqlalchemy import or_, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.models import PomodoroSession, StopwatchSession
from ..schemas.sessions import SessionRecord
from ..schemas.stats import ActivitySnapshot
from ..schemas.stopwatch import StopwatchBlock
from ..utils.civil_time import civil_day_bounds

logger = logging.getLogger(__name__)


class RecorderError(Exception):
    """Persisting or fetching failed; retryable errors may succeed on a later attempt"""

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable


class SessionRecorder(Protocol):
    def persist(self, record: SessionRecord) -> SessionRecord: ...

    def fetch_range(self, user_id: str, start_date: date, end_date: date) -> ActivitySnapshot: ...


class SqlSessionRecorder:
    """SessionRecorder over SQLAlchemy; opens one short-lived session per call"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def persist(self, record: SessionRecord) -> SessionRecord:
        """
        Store a finalized session record.

        Args:
            record: Finalized SessionRecord (must carry a user_id)

        Returns:
            The stored record

        Raises:
            RecorderError: record is not finalized (not retryable) or the
                database write failed (retryable)
        """
        if not record.is_finalized:
            raise RecorderError(f"Session record {record.id} is not finalized", retryable=False)
        if not record.user_id:
            raise RecorderError(f"Session record {record.id} has no user", retryable=False)

        db = self.session_factory()
        try:
            existing = db.get(PomodoroSession, record.id)
            if existing is not None:
                # Finalized records never change; a retried persist is a no-op
                return SessionRecord.model_validate(existing)

            row = PomodoroSession(
                id=record.id,
                user_id=record.user_id,
                task_id=record.task_id,
                mode=record.mode.value,
                planned_duration_seconds=record.planned_duration_seconds,
                actual_duration_seconds=record.actual_duration_seconds,
                completed=record.completed,
                started_at=record.started_at,
                completed_at=record.completed_at,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return SessionRecord.model_validate(row)
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Failed to persist session %s: %s", record.id, e)
            raise RecorderError(f"Failed to persist session record: {e}") from e
        finally:
            db.close()

    def persist_stopwatch_block(self, block: StopwatchBlock) -> StopwatchBlock:
        if not block.user_id:
            raise RecorderError(f"Stopwatch block {block.id} has no user", retryable=False)

        db = self.session_factory()
        try:
            row = StopwatchSession(
                id=block.id,
                user_id=block.user_id,
                task_id=block.task_id,
                duration_seconds=block.duration_seconds,
                started_at=block.started_at,
                ended_at=block.ended_at,
                notes=block.notes,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return StopwatchBlock.model_validate(row)
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Failed to persist stopwatch block %s: %s", block.id, e)
            raise RecorderError(f"Failed to persist stopwatch block: {e}") from e
        finally:
            db.close()

    def fetch_range(self, user_id: str, start_date: date, end_date: date) -> ActivitySnapshot:
        """
        Read every record of a user that can land in the civil date range.

        Sessions are matched on completed_at (started_at while unfinished),
        stopwatch blocks on started_at, using the civil-day boundaries.
        No per-day intensity signal is stored, so raw_intensity stays empty
        and intensity levels are scored from session counts alone.

        Returns:
            ActivitySnapshot with session_records and stopwatch_blocks
        """
        start_utc, end_utc = civil_day_bounds(start_date, end_date)

        db = self.session_factory()
        try:
            sessions = (db.query(PomodoroSession)
                        .filter(PomodoroSession.user_id == user_id,
                                or_(and_(PomodoroSession.completed_at.isnot(None),
                                         PomodoroSession.completed_at >= start_utc,
                                         PomodoroSession.completed_at < end_utc),
                                    and_(PomodoroSession.completed_at.is_(None),
                                         PomodoroSession.started_at >= start_utc,
                                         PomodoroSession.started_at < end_utc)))
                        .order_by(PomodoroSession.started_at)
                        .all())
            blocks = (db.query(StopwatchSession)
                      .filter(StopwatchSession.user_id == user_id,
                              StopwatchSession.started_at >= start_utc,
                              StopwatchSession.started_at < end_utc)
                      .order_by(StopwatchSession.started_at)
                      .all())

            return ActivitySnapshot(
                session_records=[SessionRecord.model_validate(s) for s in sessions],
                stopwatch_blocks=[StopwatchBlock.model_validate(b) for b in blocks],
            )
        except SQLAlchemyError as e:
            logger.warning("Failed to fetch activity for %s: %s", user_id, e)
            raise RecorderError(f"Failed to fetch activity range: {e}") from e
        finally:
            db.close()

    def recent_sessions(self, user_id: str, limit: int = 20) -> List[SessionRecord]:
        """Most recent session records, newest first"""
        db = self.session_factory()
        try:
            rows = (db.query(PomodoroSession)
                    .filter(PomodoroSession.user_id == user_id)
                    .order_by(PomodoroSession.started_at.desc())
                    .limit(limit)
                    .all())
            return [SessionRecord.model_validate(r) for r in rows]
        finally:
            db.close()

    def stopwatch_blocks_between(self, user_id: str, start_date: date, end_date: Optional[date] = None) -> List[StopwatchBlock]:
        return list(self.fetch_range(user_id, start_date, end_date or start_date).stopwatch_blocks)

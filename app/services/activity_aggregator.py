from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional

from ..schemas.sessions import SessionMode, SessionRecord
from ..schemas.stats import DailyActivity
from ..schemas.stopwatch import StopwatchBlock
from ..utils.civil_time import date_range, to_civil_date


class InvalidDateRangeError(ValueError):
    """end_date is before start_date"""


class ActivityAggregator:
    """Buckets session records and stopwatch blocks into civil days"""

    @staticmethod
    def validate_range(start_date: date, end_date: date) -> None:
        if end_date < start_date:
            raise InvalidDateRangeError(
                f"end_date {end_date.isoformat()} is before start_date {start_date.isoformat()}"
            )

    @staticmethod
    def session_date(record: SessionRecord, offset_hours: Optional[float] = None) -> date:
        return to_civil_date(record.completed_at or record.started_at, offset_hours)

    @staticmethod
    def aggregate(
        start_date: date,
        end_date: date,
        session_records: Iterable[SessionRecord] = (),
        stopwatch_blocks: Iterable[StopwatchBlock] = (),
        raw_intensity: Optional[Mapping[date, int]] = None,
        offset_hours: Optional[float] = None
    ) -> List[DailyActivity]:
        """
        Build one DailyActivity per date in the inclusive range.

        Args:
            start_date: First civil date
            end_date: Last civil date
            session_records: Timer sessions; only completed Work sessions count
            stopwatch_blocks: Free-running stopwatch time
            raw_intensity: Optional per-date intensity signal carried through
            offset_hours: Civil-day UTC offset override

        Returns:
            Chronological list of DailyActivity, zero-filled for empty days

        Raises:
            InvalidDateRangeError: end_date < start_date
        """
        ActivityAggregator.validate_range(start_date, end_date)

        pomodoro_counts: Dict[date, int] = {}
        pomodoro_seconds: Dict[date, int] = {}
        for record in session_records:
            if record.mode is not SessionMode.WORK or not record.completed:
                continue
            day = ActivityAggregator.session_date(record, offset_hours)
            if day < start_date or day > end_date:
                continue
            pomodoro_counts[day] = pomodoro_counts.get(day, 0) + 1
            seconds = record.actual_duration_seconds
            if seconds is None:
                seconds = record.planned_duration_seconds
            pomodoro_seconds[day] = pomodoro_seconds.get(day, 0) + seconds

        block_counts: Dict[date, int] = {}
        block_seconds: Dict[date, int] = {}
        for block in stopwatch_blocks:
            day = to_civil_date(block.started_at, offset_hours)
            if day < start_date or day > end_date:
                continue
            block_counts[day] = block_counts.get(day, 0) + 1
            block_seconds[day] = block_seconds.get(day, 0) + block.duration_seconds

        raw_intensity = raw_intensity or {}
        days = []
        for day in date_range(start_date, end_date):
            pomodoros = pomodoro_counts.get(day, 0)
            blocks = block_counts.get(day, 0)
            free_running = block_seconds.get(day, 0)
            days.append(DailyActivity(
                date=day,
                session_count=pomodoros + blocks,
                pomodoro_session_count=pomodoros,
                stopwatch_block_count=blocks,
                free_running_seconds=free_running,
                total_focus_minutes=pomodoro_seconds.get(day, 0) // 60 + free_running // 60,
                raw_intensity=raw_intensity.get(day, 0),
            ))
        return days

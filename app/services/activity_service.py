"""
Activity Service

Builds the ActivityWindow for a date range: one snapshot read through the
session recorder, then aggregation, intensity scoring and streaks. Nothing is
cached; every query starts from a fresh snapshot.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable, List, Optional

from ..api.metrics import activity_query_duration
from ..schemas.stats import ActivitySnapshot, ActivityWindow, DailyActivity, HeatmapResponse
from ..utils.civil_time import civil_today
from .activity_aggregator import ActivityAggregator
from .heatmap_grid import HeatmapGridBuilder
from .intensity_model import IntensityModel
from .session_recorder import SessionRecorder
from .streak_calculator import StreakCalculator

DEFAULT_HEATMAP_DAYS = 365


class ActivityService:

    def __init__(
        self,
        recorder: SessionRecorder,
        intensity_model: Optional[IntensityModel] = None,
        today: Callable[[], date] = civil_today,
        count_today_in_progress: bool = True
    ):
        self.recorder = recorder
        self.intensity_model = intensity_model or IntensityModel()
        self._today = today
        self.count_today_in_progress = count_today_in_progress

    def today(self) -> date:
        return self._today()

    def get_activity(self, user_id: str, start_date: date, end_date: date) -> ActivityWindow:
        """
        Activity for a user over an inclusive civil date range.

        Raises:
            InvalidDateRangeError: end_date < start_date
            RecorderError: the snapshot could not be read
        """
        ActivityAggregator.validate_range(start_date, end_date)
        with activity_query_duration.time():
            snapshot = self.recorder.fetch_range(user_id, start_date, end_date)
            return self.build_window(snapshot, start_date, end_date)

    def get_daily(self, user_id: str, start_date: date, end_date: date) -> List[DailyActivity]:
        return self.get_activity(user_id, start_date, end_date).days

    def get_heatmap(self, user_id: str, start_date: Optional[date] = None, end_date: Optional[date] = None) -> HeatmapResponse:
        end_date = end_date or self.today()
        start_date = start_date or end_date - timedelta(days=DEFAULT_HEATMAP_DAYS)
        window = self.get_activity(user_id, start_date, end_date)
        grid = HeatmapGridBuilder.build(window.days, start_date, end_date, today=self.today())
        return HeatmapResponse(activity=window, grid=grid)

    def build_window(self, snapshot: ActivitySnapshot, start_date: date, end_date: date) -> ActivityWindow:
        today = self.today()
        days = ActivityAggregator.aggregate(
            start_date,
            end_date,
            snapshot.session_records,
            snapshot.stopwatch_blocks,
            snapshot.raw_intensity,
        )
        days, tier = self.intensity_model.apply(days, today)
        current_streak, longest_streak = StreakCalculator.calculate(days, today, self.count_today_in_progress)

        active_days = sum(1 for d in days if d.session_count > 0)
        recent_sessions = sum(d.session_count for d in days if self.intensity_model.is_recent(d.date, today))

        return ActivityWindow(
            start_date=start_date,
            end_date=end_date,
            days=days,
            total_sessions=sum(d.session_count for d in days),
            current_streak=current_streak,
            longest_streak=longest_streak,
            active_days=active_days,
            consistency_percent=round(active_days / max(len(days), 1) * 100, 1),
            total_focus_minutes=sum(d.total_focus_minutes for d in days),
            recent_sessions=recent_sessions,
            activity_tier=tier,
        )

from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..schemas.stats import DailyActivity, HeatmapCell, HeatmapGrid, MonthLabel

MONTH_NAMES = [
    'Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
    'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec'
]


def _sunday_index(day: date) -> int:
    # date.weekday() is Monday=0; the grid uses Sunday=0
    return (day.weekday() + 1) % 7


class HeatmapGridBuilder:
    """Lays DailyActivity out as week columns for a calendar heatmap"""

    @staticmethod
    def build(days: Sequence[DailyActivity], start_date: date, end_date: date, today: Optional[date] = None) -> HeatmapGrid:
        by_date: Dict[date, DailyActivity] = {d.date: d for d in days}
        first_sunday = start_date - timedelta(days=_sunday_index(start_date))

        weeks: List[List[HeatmapCell]] = []
        week_start = first_sunday
        week_index = 0
        while week_start <= end_date:
            week = []
            for offset in range(7):
                current = week_start + timedelta(days=offset)
                if current < start_date or current > end_date:
                    week.append(HeatmapCell(day_of_week=offset, week_index=week_index))
                    continue
                activity = by_date.get(current)
                week.append(HeatmapCell(
                    date=current,
                    day_of_week=offset,
                    week_index=week_index,
                    session_count=activity.session_count if activity else 0,
                    pomodoro_session_count=activity.pomodoro_session_count if activity else 0,
                    free_running_seconds=activity.free_running_seconds if activity else 0,
                    total_focus_minutes=activity.total_focus_minutes if activity else 0,
                    intensity_level=activity.intensity_level if activity else 0,
                    is_today=current == today,
                ))
            weeks.append(week)
            week_start += timedelta(days=7)
            week_index += 1

        return HeatmapGrid(weeks=weeks, month_labels=HeatmapGridBuilder.month_labels(weeks))

    @staticmethod
    def month_labels(weeks: Sequence[Sequence[HeatmapCell]]) -> List[MonthLabel]:
        """One label at the first week where each (year, month) shows up"""
        labels = []
        seen: Set[Tuple[int, int]] = set()
        for index, week in enumerate(weeks):
            first = next((cell for cell in week if cell.date is not None), None)
            if first is None:
                continue
            key = (first.date.year, first.date.month)
            if key not in seen:
                seen.add(key)
                labels.append(MonthLabel(month=MONTH_NAMES[first.date.month - 1], year=first.date.year, week_index=index))
        return labels

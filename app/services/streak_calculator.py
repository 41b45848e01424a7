from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Set, Tuple

from ..schemas.stats import DailyActivity


class StreakCalculator:

    @staticmethod
    def longest_streak(days: Iterable[DailyActivity]) -> int:
        """Longest run of consecutive dates with at least one session"""
        longest = 0
        run = 0
        previous = None
        for day in sorted(days, key=lambda d: d.date):
            if day.session_count > 0:
                if previous is not None and run and day.date - previous == timedelta(days=1):
                    run += 1
                else:
                    run = 1
                longest = max(longest, run)
            else:
                run = 0
            previous = day.date
        return longest

    @staticmethod
    def current_streak(days: Iterable[DailyActivity], today: date, count_today_in_progress: bool = True) -> int:
        """
        Run of active days ending today, or ending yesterday when today has
        no activity yet. With count_today_in_progress=False an inactive
        today ends the streak.
        """
        active: Set[date] = {d.date for d in days if d.session_count > 0}

        cursor = today
        if cursor not in active:
            if not count_today_in_progress:
                return 0
            cursor = today - timedelta(days=1)

        streak = 0
        while cursor in active:
            streak += 1
            cursor -= timedelta(days=1)
        return streak

    @staticmethod
    def calculate(days: Iterable[DailyActivity], today: date, count_today_in_progress: bool = True) -> Tuple[int, int]:
        """Returns (current_streak, longest_streak)"""
        days = list(days)
        return (
            StreakCalculator.current_streak(days, today, count_today_in_progress),
            StreakCalculator.longest_streak(days),
        )

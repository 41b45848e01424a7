"""
Intensity Model

Maps a day's activity to a heatmap intensity level in [0, 6], normalized by
the user's overall activity tier so that light and heavy users both get a
readable calendar.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Dict, List, Optional, Sequence

from ..schemas.stats import ActivityTier, DailyActivity


class IntensityModel:
    """Tier classification and per-day scoring; every constant can be overridden per instance"""

    MAX_INTENSITY = 6
    SESSION_RATIO_WEIGHT = 3.0
    ORIGINAL_INTENSITY_WEIGHT = 0.7
    RECENCY_BONUS = 1
    RECENCY_WINDOW_DAYS = 7

    TIER_MULTIPLIERS: Dict[ActivityTier, float] = {
        ActivityTier.LOW: 1.2,
        ActivityTier.MEDIUM: 1.0,
        ActivityTier.HIGH: 0.8,
        ActivityTier.EXPERT: 0.6,
    }

    # (tier, min average sessions per day, min peak daily count), highest first
    TIER_THRESHOLDS = (
        (ActivityTier.EXPERT, 5.0, 10),
        (ActivityTier.HIGH, 3.0, 6),
        (ActivityTier.MEDIUM, 1.5, 3),
    )

    def __init__(
        self,
        tier_multipliers: Optional[Dict[ActivityTier, float]] = None,
        recency_bonus: Optional[int] = None,
        recency_window_days: Optional[int] = None,
        max_intensity: Optional[int] = None
    ):
        if tier_multipliers is not None:
            self.TIER_MULTIPLIERS = {**self.TIER_MULTIPLIERS, **tier_multipliers}
        if recency_bonus is not None:
            self.RECENCY_BONUS = recency_bonus
        if recency_window_days is not None:
            self.RECENCY_WINDOW_DAYS = recency_window_days
        if max_intensity is not None:
            self.MAX_INTENSITY = max_intensity

    def classify_tier(self, counts: Sequence[int]) -> ActivityTier:
        """Tier for a whole window from its per-day counts"""
        if not counts:
            return ActivityTier.LOW
        average = sum(counts) / max(len(counts), 1)
        peak = max(counts)
        for tier, min_average, min_peak in self.TIER_THRESHOLDS:
            if average >= min_average or peak >= min_peak:
                return tier
        return ActivityTier.LOW

    def is_recent(self, day: date, today: date) -> bool:
        age = (today - day).days
        return 0 <= age < self.RECENCY_WINDOW_DAYS

    def score(
        self,
        count: int,
        max_daily_count: int,
        tier: ActivityTier,
        original_intensity: int = 0,
        recent: bool = False
    ) -> int:
        """
        Intensity for one day.

        The recency bonus is added after the first clamp and the result is
        clamped again, so an already saturated day stays at the maximum.
        """
        session_ratio = count / max(max_daily_count, 1)
        weighted = (session_ratio * self.SESSION_RATIO_WEIGHT
                    + (original_intensity or 0) * self.ORIGINAL_INTENSITY_WEIGHT)
        base = self._round_half_up(weighted * self.TIER_MULTIPLIERS[tier])
        clamped = self._clamp(base)
        if count > 0 and recent:
            clamped += self.RECENCY_BONUS
        return self._clamp(clamped)

    def apply(self, days: List[DailyActivity], today: date) -> tuple[List[DailyActivity], ActivityTier]:
        """Score every day of a window; returns new DailyActivity objects and the window tier"""
        counts = [d.session_count for d in days]
        tier = self.classify_tier(counts)
        max_daily_count = max(counts, default=0)

        scored = [
            day.model_copy(update={
                "intensity_level": self.score(
                    day.session_count,
                    max_daily_count,
                    tier,
                    day.raw_intensity,
                    self.is_recent(day.date, today),
                )
            })
            for day in days
        ]
        return scored, tier

    def _clamp(self, value: int) -> int:
        return max(0, min(int(value), self.MAX_INTENSITY))

    @staticmethod
    def _round_half_up(value: float) -> int:
        return int(math.floor(value + 0.5))

from __future__ import annotations

from enum import Enum
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
import datetime as dt

from .sessions import SessionRecord
from .stopwatch import StopwatchBlock


class ActivityTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXPERT = "expert"


class DailyActivity(BaseModel):
    date: dt.date
    session_count: int = 0
    pomodoro_session_count: int = 0
    stopwatch_block_count: int = 0
    free_running_seconds: int = 0
    total_focus_minutes: int = 0
    intensity_level: int = Field(default=0, ge=0, le=6)
    raw_intensity: int = 0

    class Config:
        from_attributes = True


class ActivityWindow(BaseModel):
    start_date: dt.date
    end_date: dt.date
    days: List[DailyActivity]
    total_sessions: int
    current_streak: int
    longest_streak: int
    active_days: int = 0
    consistency_percent: float = 0.0
    total_focus_minutes: int = 0
    recent_sessions: int = 0
    activity_tier: ActivityTier = ActivityTier.LOW


class ActivitySnapshot(BaseModel):
    """Read-consistent input for one analytics query"""
    session_records: List[SessionRecord] = Field(default_factory=list)
    stopwatch_blocks: List[StopwatchBlock] = Field(default_factory=list)
    raw_intensity: Dict[dt.date, int] = Field(default_factory=dict)

    class Config:
        frozen = True


class HeatmapCell(BaseModel):
    date: Optional[dt.date] = None
    day_of_week: int = Field(ge=0, le=6)
    week_index: int
    session_count: int = 0
    pomodoro_session_count: int = 0
    free_running_seconds: int = 0
    total_focus_minutes: int = 0
    intensity_level: int = 0
    is_today: bool = False


class MonthLabel(BaseModel):
    month: str
    year: int
    week_index: int


class HeatmapGrid(BaseModel):
    weeks: List[List[HeatmapCell]]
    month_labels: List[MonthLabel]


class HeatmapResponse(BaseModel):
    activity: ActivityWindow
    grid: HeatmapGrid

from __future__ import annotations

from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional
import os
import uuid

from .sessions import SessionMode


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, default))


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class TimerPhase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


class TimerSettings(BaseModel):
    work_duration_seconds: int = Field(default=1500, gt=0)
    short_break_duration_seconds: int = Field(default=300, gt=0)
    long_break_duration_seconds: int = Field(default=1800, gt=0)
    sessions_until_long_break: int = Field(default=4, ge=2)
    auto_start_breaks: bool = False
    auto_start_work: bool = False

    @classmethod
    def from_env(cls) -> TimerSettings:
        """Server-wide defaults, overridable through environment variables"""
        return cls(
            work_duration_seconds=_env_int("WORK_DURATION_SECONDS", 1500),
            short_break_duration_seconds=_env_int("SHORT_BREAK_DURATION_SECONDS", 300),
            long_break_duration_seconds=_env_int("LONG_BREAK_DURATION_SECONDS", 1800),
            sessions_until_long_break=_env_int("SESSIONS_UNTIL_LONG_BREAK", 4),
            auto_start_breaks=_env_bool("AUTO_START_BREAKS"),
            auto_start_work=_env_bool("AUTO_START_WORK"),
        )

    def duration_for(self, mode: SessionMode) -> int:
        if mode is SessionMode.WORK:
            return self.work_duration_seconds
        if mode is SessionMode.SHORT_BREAK:
            return self.short_break_duration_seconds
        return self.long_break_duration_seconds


class TimerSettingsUpdate(BaseModel):
    work_duration_seconds: Optional[int] = Field(None, gt=0)
    short_break_duration_seconds: Optional[int] = Field(None, gt=0)
    long_break_duration_seconds: Optional[int] = Field(None, gt=0)
    sessions_until_long_break: Optional[int] = Field(None, ge=2)
    auto_start_breaks: Optional[bool] = None
    auto_start_work: Optional[bool] = None


class TimerState(BaseModel):
    """Read-only snapshot of a timer; the engine owns the live state"""
    mode: SessionMode = SessionMode.WORK
    phase: TimerPhase = TimerPhase.IDLE
    remaining_or_elapsed_seconds: int = Field(default=0, ge=0)
    total_seconds: int = Field(default=0, ge=0)
    running: bool = False
    paused: bool = False
    reversed: bool = False
    sessions_completed: int = Field(default=0, ge=0)
    cycle_length: int = Field(default=4, ge=2)
    session_id: Optional[uuid.UUID] = None
    auto_start_pending: bool = False

    class Config:
        frozen = True


class CycleLengthUpdate(BaseModel):
    cycle_length: int = Field(..., ge=2)


class TimerStartRequest(BaseModel):
    task_id: Optional[str] = None

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator
from typing import Optional
import datetime as dt
from datetime import datetime
import uuid

from ..utils.civil_time import as_naive_utc


class StopwatchBlockCreate(BaseModel):
    duration_seconds: int = Field(..., gt=0)
    started_at: datetime
    ended_at: datetime
    task_id: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_interval(self) -> StopwatchBlockCreate:
        if as_naive_utc(self.ended_at) <= as_naive_utc(self.started_at):
            raise ValueError("End time must be after start time")
        return self


class StopwatchBlock(BaseModel):
    """One free-running stopwatch run"""
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    user_id: Optional[str] = None
    duration_seconds: int = Field(ge=0)
    started_at: datetime
    ended_at: datetime
    task_id: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True
        frozen = True


class StopwatchDailyTotal(BaseModel):
    date: dt.date
    total_seconds: int
    block_count: int

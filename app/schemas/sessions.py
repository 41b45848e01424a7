from __future__ import annotations

from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
import uuid


class SessionMode(str, Enum):
    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"

    @property
    def is_break(self) -> bool:
        return self is not SessionMode.WORK


class SessionRecord(BaseModel):
    """
    Durable record of one focus or break period.

    Opened when a session starts and finalized exactly once, on natural
    completion or an explicit stop. Instances are frozen: finalizing returns
    a new record.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    user_id: Optional[str] = None
    mode: SessionMode
    planned_duration_seconds: int = Field(ge=0)
    actual_duration_seconds: Optional[int] = Field(None, ge=0)
    started_at: datetime
    completed_at: Optional[datetime] = None
    completed: bool = False
    task_id: Optional[str] = None

    class Config:
        from_attributes = True
        frozen = True

    @property
    def is_finalized(self) -> bool:
        return self.actual_duration_seconds is not None

    def finalize(self, actual_duration_seconds: int, completed: bool, completed_at: datetime) -> SessionRecord:
        """Return the finalized copy of this record"""
        if self.is_finalized:
            raise ValueError(f"Session record {self.id} is already finalized")
        return self.model_copy(update={
            "actual_duration_seconds": max(0, int(actual_duration_seconds)),
            "completed": completed,
            "completed_at": completed_at,
        })


class SessionRecordCreate(BaseModel):
    """A finished session reported by a client-side timer"""
    mode: SessionMode = SessionMode.WORK
    planned_duration_seconds: int = Field(..., gt=0)
    actual_duration_seconds: int = Field(..., ge=0)
    started_at: Optional[datetime] = None
    completed: bool = True
    task_id: Optional[str] = None

"""
Stopwatch API Endpoints

Free-running stopwatch blocks. They count towards the activity heatmap next
to timer sessions, bucketed on the same civil-day boundary.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from .auth import get_current_user_id, get_session_recorder
from ..schemas.stopwatch import StopwatchBlock, StopwatchBlockCreate, StopwatchDailyTotal
from ..services.session_recorder import RecorderError, SqlSessionRecorder
from ..utils.civil_time import as_naive_utc, civil_today

router = APIRouter(prefix="/stopwatch", tags=["stopwatch"])


@router.post("", response_model=StopwatchBlock, status_code=status.HTTP_201_CREATED)
def create_stopwatch_block(
    block_data: StopwatchBlockCreate,
    user_id: str = Depends(get_current_user_id),
    recorder: SqlSessionRecorder = Depends(get_session_recorder)
):
    """
    Record one stopwatch run.

    Raises:
        422: Non-positive duration or end time not after start time
        503: The block could not be stored
    """
    block = StopwatchBlock(
        user_id=user_id,
        duration_seconds=block_data.duration_seconds,
        started_at=as_naive_utc(block_data.started_at),
        ended_at=as_naive_utc(block_data.ended_at),
        task_id=block_data.task_id,
        notes=block_data.notes,
    )
    try:
        return recorder.persist_stopwatch_block(block)
    except RecorderError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Failed to save stopwatch session: {str(e)}"
        )


@router.get("/today", response_model=StopwatchDailyTotal)
def get_today_total(
    user_id: str = Depends(get_current_user_id),
    recorder: SqlSessionRecorder = Depends(get_session_recorder)
):
    """Stopwatch total for the current civil day"""
    today = civil_today()
    try:
        blocks = recorder.stopwatch_blocks_between(user_id, today)
    except RecorderError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Failed to load stopwatch sessions: {str(e)}"
        )
    return StopwatchDailyTotal(
        date=today,
        total_seconds=sum(b.duration_seconds for b in blocks),
        block_count=len(blocks),
    )

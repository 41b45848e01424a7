from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List

from .auth import get_current_user_id, get_session_recorder
from ..schemas.sessions import SessionRecord, SessionRecordCreate
from ..services.session_recorder import RecorderError, SqlSessionRecorder
from ..utils.civil_time import as_naive_utc, utcnow
from datetime import timedelta

router = APIRouter(
    prefix="/sessions",
    tags=["sessions"],
    responses={404: {"description": "Not found"}}
)

@router.get("", response_model=List[SessionRecord])
def list_sessions(
    limit: int = Query(20, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
    recorder: SqlSessionRecorder = Depends(get_session_recorder)
):
    """Recent session records, newest first"""
    return recorder.recent_sessions(user_id, limit)

@router.post("", response_model=SessionRecord, status_code=status.HTTP_201_CREATED)
def record_session(
    session_data: SessionRecordCreate,
    user_id: str = Depends(get_current_user_id),
    recorder: SqlSessionRecorder = Depends(get_session_recorder)
):
    """Record a session finished by a timer running outside this server (e.g. offline)"""
    completed_at = utcnow()
    started_at = (as_naive_utc(session_data.started_at) if session_data.started_at
                  else completed_at - timedelta(seconds=session_data.actual_duration_seconds))
    record = SessionRecord(
        user_id=user_id,
        mode=session_data.mode,
        planned_duration_seconds=session_data.planned_duration_seconds,
        started_at=started_at,
        task_id=session_data.task_id,
    ).finalize(session_data.actual_duration_seconds, session_data.completed, completed_at)

    try:
        return recorder.persist(record)
    except RecorderError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE if e.retryable else status.HTTP_400_BAD_REQUEST,
            detail=f"Failed to record session: {str(e)}"
        )

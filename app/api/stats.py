from __future__ import annotations

from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from .auth import get_activity_service, get_current_user_id
from ..schemas.stats import ActivityWindow, DailyActivity, HeatmapResponse
from ..services.activity_aggregator import InvalidDateRangeError
from ..services.activity_service import ActivityService
from ..services.session_recorder import RecorderError

router = APIRouter(prefix="/stats", tags=["stats"])


def _recorder_unavailable(e: RecorderError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE if e.retryable else status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to load activity: {str(e)}"
    )


@router.get("/activity", response_model=ActivityWindow)
def get_activity(
    start_date: date = Query(..., description="First civil date (YYYY-MM-DD)"),
    end_date: date = Query(..., description="Last civil date (YYYY-MM-DD), inclusive"),
    user_id: str = Depends(get_current_user_id),
    service: ActivityService = Depends(get_activity_service)
):
    """Per-day activity with streak and consistency metrics"""
    try:
        return service.get_activity(user_id, start_date, end_date)
    except InvalidDateRangeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RecorderError as e:
        raise _recorder_unavailable(e)


@router.get("/daily", response_model=List[DailyActivity])
def get_daily_stats(
    start_date: Optional[date] = Query(None, description="Defaults to today"),
    end_date: Optional[date] = Query(None, description="Defaults to today"),
    user_id: str = Depends(get_current_user_id),
    service: ActivityService = Depends(get_activity_service)
):
    """Daily buckets for a range; today (civil day) when no dates are given"""
    today = service.today()
    try:
        return service.get_daily(user_id, start_date or today, end_date or today)
    except InvalidDateRangeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RecorderError as e:
        raise _recorder_unavailable(e)


@router.get("/heatmap", response_model=HeatmapResponse)
def get_heatmap(
    start_date: Optional[date] = Query(None, description="Defaults to 365 days before end_date"),
    end_date: Optional[date] = Query(None, description="Defaults to today"),
    user_id: str = Depends(get_current_user_id),
    service: ActivityService = Depends(get_activity_service)
):
    """Activity window plus the week-aligned grid for a calendar heatmap"""
    try:
        return service.get_heatmap(user_id, start_date, end_date)
    except InvalidDateRangeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RecorderError as e:
        raise _recorder_unavailable(e)

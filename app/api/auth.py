from typing import Optional

from fastapi import Header, HTTPException, Request, status

from ..database import SessionLocal
from ..services.activity_service import ActivityService
from ..services.session_recorder import SqlSessionRecorder
from ..services.timer_service import TimerRegistry


async def get_current_user_id(
    user_id: Optional[str] = Header(default=None, alias="X-User-Id")
) -> str:
    """User identity comes from the X-User-Id header; authentication happens upstream."""
    if not user_id or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing X-User-Id header"
        )
    return user_id.strip()


def get_session_recorder() -> SqlSessionRecorder:
    return SqlSessionRecorder(SessionLocal)


def get_activity_service() -> ActivityService:
    return ActivityService(get_session_recorder())


def get_timer_registry(request: Request) -> TimerRegistry:
    return request.app.state.timer_registry

"""
Timer API Endpoints

Commands for the caller's timer engine. Every endpoint is async so that all
engine access happens on the event loop that also drives its ticks.
"""

from __future__ import annotations

from typing import Optional
from fastapi import APIRouter, Depends, status

from .auth import get_current_user_id, get_timer_registry
from ..schemas.timer import CycleLengthUpdate, TimerSettings, TimerSettingsUpdate, TimerStartRequest, TimerState
from ..services.timer_service import TimerRegistry

router = APIRouter(
    prefix="/timer",
    tags=["timer"],
    responses={400: {"description": "Missing user"}}
)


@router.get("", response_model=TimerState)
async def get_timer_state(
    user_id: str = Depends(get_current_user_id),
    registry: TimerRegistry = Depends(get_timer_registry)
):
    """Current timer state, brought up to date with the wall clock"""
    return registry.get(user_id).tick()


@router.post("/start", response_model=TimerState)
async def start_timer(
    payload: Optional[TimerStartRequest] = None,
    user_id: str = Depends(get_current_user_id),
    registry: TimerRegistry = Depends(get_timer_registry)
):
    task_id = payload.task_id if payload else None
    return registry.get(user_id).start(task_id=task_id)


@router.post("/pause", response_model=TimerState)
async def pause_timer(
    user_id: str = Depends(get_current_user_id),
    registry: TimerRegistry = Depends(get_timer_registry)
):
    return registry.get(user_id).pause()


@router.post("/resume", response_model=TimerState)
async def resume_timer(
    user_id: str = Depends(get_current_user_id),
    registry: TimerRegistry = Depends(get_timer_registry)
):
    return registry.get(user_id).resume()


@router.post("/skip", response_model=TimerState)
async def skip_session(
    user_id: str = Depends(get_current_user_id),
    registry: TimerRegistry = Depends(get_timer_registry)
):
    """Jump to the next mode without recording the current session"""
    return registry.get(user_id).skip()


@router.post("/stop", response_model=TimerState)
async def stop_session(
    user_id: str = Depends(get_current_user_id),
    registry: TimerRegistry = Depends(get_timer_registry)
):
    """End the session early; it is recorded as not completed"""
    return registry.get(user_id).stop()


@router.post("/reset", response_model=TimerState)
async def reset_timer(
    user_id: str = Depends(get_current_user_id),
    registry: TimerRegistry = Depends(get_timer_registry)
):
    return registry.get(user_id).reset()


@router.post("/reset-all", response_model=TimerState)
async def reset_all(
    user_id: str = Depends(get_current_user_id),
    registry: TimerRegistry = Depends(get_timer_registry)
):
    return registry.get(user_id).reset_all()


@router.post("/reverse", response_model=TimerState)
async def toggle_reverse(
    user_id: str = Depends(get_current_user_id),
    registry: TimerRegistry = Depends(get_timer_registry)
):
    return registry.get(user_id).toggle_reverse()


@router.put("/cycle-length", response_model=TimerState)
async def set_cycle_length(
    update: CycleLengthUpdate,
    user_id: str = Depends(get_current_user_id),
    registry: TimerRegistry = Depends(get_timer_registry)
):
    return registry.get(user_id).set_cycle_length(update.cycle_length)


@router.get("/settings", response_model=TimerSettings)
async def get_settings(
    user_id: str = Depends(get_current_user_id),
    registry: TimerRegistry = Depends(get_timer_registry)
):
    return registry.get(user_id).settings


@router.put("/settings", response_model=TimerSettings, status_code=status.HTTP_200_OK)
async def update_settings(
    update: TimerSettingsUpdate,
    user_id: str = Depends(get_current_user_id),
    registry: TimerRegistry = Depends(get_timer_registry)
):
    """Update durations and auto-start flags; a running session keeps its duration"""
    engine = registry.get(user_id)
    settings = engine.settings.model_copy(update=update.model_dump(exclude_unset=True, exclude_none=True))
    engine.apply_settings(settings)
    return engine.settings

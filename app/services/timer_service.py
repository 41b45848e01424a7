from __future__ import annotations

import logging
import os
import time
from typing import Callable, Dict, Optional

from ..api.metrics import active_timers, session_persist_failures, sessions_completed, sessions_skipped, sessions_stopped
from ..schemas.sessions import SessionMode, SessionRecord
from ..schemas.timer import TimerPhase, TimerSettings
from .session_recorder import RecorderError, SessionRecorder
from .timer_clock import AsyncioTickScheduler, TickScheduler
from .timer_engine import TimerEngine

logger = logging.getLogger(__name__)

IDLE_TTL_SECONDS = float(os.environ.get("TIMER_IDLE_TTL_SECONDS", "3600"))
MAX_ENGINES = int(os.environ.get("TIMER_MAX_ENGINES", "10000"))


class TimerRegistry:
    """
    Holds one TimerEngine per user.

    Engines are created lazily with the server default settings. An engine
    that sits idle (nothing running, paused, pending or waiting for a
    persist retry) for longer than `idle_ttl_seconds` is evicted on the next
    lookup, and once `max_engines` is reached the least recently used idle
    engine makes room for a new one. Everything left is closed on shutdown.
    """

    def __init__(
        self,
        recorder: Optional[SessionRecorder] = None,
        default_settings: Optional[TimerSettings] = None,
        scheduler_factory: Callable[[], TickScheduler] = AsyncioTickScheduler,
        clock: Callable[[], float] = time.time,
        idle_ttl_seconds: float = IDLE_TTL_SECONDS,
        max_engines: int = MAX_ENGINES
    ):
        self.recorder = recorder
        self.default_settings = default_settings or TimerSettings.from_env()
        self.scheduler_factory = scheduler_factory
        self.clock = clock
        self.idle_ttl_seconds = idle_ttl_seconds
        self.max_engines = max_engines
        self._engines: Dict[str, TimerEngine] = {}
        self._last_used: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._engines)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._engines

    def get(self, user_id: str) -> TimerEngine:
        now = self.clock()
        engine = self._engines.get(user_id)
        if engine is None:
            self.evict_idle(now)
            if len(self._engines) >= self.max_engines:
                self._evict_least_recent()
            engine = TimerEngine(
                settings=self.default_settings,
                recorder=self.recorder,
                scheduler=self.scheduler_factory(),
                clock=self.clock,
                user_id=user_id,
            )
            self._attach_metrics(engine)
            self._engines[user_id] = engine
            active_timers.set(len(self._engines))
            logger.debug("Created timer for user %s", user_id)
        self._last_used[user_id] = now
        return engine

    def evict_idle(self, now: Optional[float] = None) -> int:
        """Discard engines idle for longer than the TTL; returns how many went"""
        if now is None:
            now = self.clock()
        stale = [
            user_id for user_id, engine in self._engines.items()
            if self._is_idle(engine) and now - self._last_used.get(user_id, now) > self.idle_ttl_seconds
        ]
        for user_id in stale:
            self.discard(user_id)
        if stale:
            logger.info("Evicted %d idle timers", len(stale))
        return len(stale)

    def discard(self, user_id: str) -> None:
        engine = self._engines.pop(user_id, None)
        self._last_used.pop(user_id, None)
        if engine is not None:
            engine.close()
            active_timers.set(len(self._engines))

    def close_all(self) -> None:
        for user_id in list(self._engines):
            self.discard(user_id)

    def _evict_least_recent(self) -> None:
        idle = [user_id for user_id, engine in self._engines.items() if self._is_idle(engine)]
        if not idle:
            logger.warning("Timer registry holds %d active timers, over the limit of %d",
                           len(self._engines), self.max_engines)
            return
        oldest = min(idle, key=lambda user_id: self._last_used.get(user_id, 0.0))
        logger.debug("Evicting least recently used timer for user %s", oldest)
        self.discard(oldest)

    @staticmethod
    def _is_idle(engine: TimerEngine) -> bool:
        state = engine.state
        return state.phase is TimerPhase.IDLE and not state.auto_start_pending and not engine.failed_records

    @staticmethod
    def _attach_metrics(engine: TimerEngine) -> None:
        def completed(session_id, mode: SessionMode, actual_seconds: int):
            sessions_completed.labels(mode=mode.value).inc()

        def mode_changed(previous: SessionMode, next_mode: SessionMode, natural: bool):
            if not natural:
                sessions_skipped.labels(mode=previous.value).inc()

        def stopped(record: SessionRecord):
            sessions_stopped.labels(mode=record.mode.value).inc()

        def persist_failed(record: SessionRecord, error: RecorderError):
            session_persist_failures.inc()

        engine.on_session_complete.add_listener(completed)
        engine.on_mode_change.add_listener(mode_changed)
        engine.on_session_stopped.add_listener(stopped)
        engine.on_persist_error.add_listener(persist_failed)

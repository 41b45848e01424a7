"""
Timer Engine

State machine for one focus/break cycle: Work, ShortBreak and LongBreak
modes, each Idle, Running or Paused.

Commands never raise for a wrong state; a command that does not apply is a
no-op. All commands and ticks must come from one thread (the owning event
loop), the engine does no locking of its own.
"""

from __future__ import annotations

import logging
import math
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from ..schemas.sessions import SessionMode, SessionRecord
from ..schemas.timer import TimerPhase, TimerSettings, TimerState
from ..utils.event import Event
from .session_recorder import RecorderError, SessionRecorder
from .timer_clock import Cancellable, ManualTickScheduler, TickScheduler

logger = logging.getLogger(__name__)


def _timestamp(now: float) -> datetime:
    return datetime.fromtimestamp(now, timezone.utc).replace(tzinfo=None)


class TimerEngine:
    """
    Owns the single live timer state of one user.

    Events:
        on_tick(value, total_seconds): after every tick while running
        on_session_complete(session_id, mode, actual_duration_seconds):
            once per session that ran down to zero
        on_session_stopped(record): a session was stopped before the end
        on_mode_change(previous, next, natural): after every mode switch;
            natural is False for skips
        on_persist_error(record, error): the recorder rejected a record
    """

    AUTO_START_DELAY_SECONDS = 1.0

    def __init__(
        self,
        settings: Optional[TimerSettings] = None,
        recorder: Optional[SessionRecorder] = None,
        scheduler: Optional[TickScheduler] = None,
        clock: Callable[[], float] = time.time,
        user_id: Optional[str] = None,
        auto_start_delay: Optional[float] = None,
    ):
        self.settings = settings or TimerSettings()
        self.recorder = recorder
        self.scheduler = scheduler or ManualTickScheduler()
        self.user_id = user_id
        self.auto_start_delay = self.AUTO_START_DELAY_SECONDS if auto_start_delay is None else auto_start_delay
        self._clock = clock

        self.on_tick = Event("on_tick")
        self.on_session_complete = Event("on_session_complete")
        self.on_session_stopped = Event("on_session_stopped")
        self.on_mode_change = Event("on_mode_change")
        self.on_persist_error = Event("on_persist_error")

        # Records whose persist failed with a retryable error
        self.failed_records: List[SessionRecord] = []

        self._mode = SessionMode.WORK
        self._phase = TimerPhase.IDLE
        self._reversed = False
        self._sessions_completed = 0
        self._cycle_length = self.settings.sessions_until_long_break

        self._total = 0
        self._remaining = 0
        self._elapsed = 0
        self._target_time: Optional[float] = None
        self._anchor_time: Optional[float] = None
        # Exact seconds left (forward) or elapsed (reverse) while paused
        self._carried_seconds: Optional[float] = None

        self._record: Optional[SessionRecord] = None
        self._task_id: Optional[str] = None
        self._completion_fired = False
        self._auto_start_handle: Optional[Cancellable] = None
        self._closed = False

        self._load_fresh_duration()

    # ------------------------------------------------------------------
    # Read side

    @property
    def state(self) -> TimerState:
        return TimerState(
            mode=self._mode,
            phase=self._phase,
            remaining_or_elapsed_seconds=self._display_value(),
            total_seconds=self._total,
            running=self._phase is TimerPhase.RUNNING,
            paused=self._phase is TimerPhase.PAUSED,
            reversed=self._reversed,
            sessions_completed=self._sessions_completed,
            cycle_length=self._cycle_length,
            session_id=self._record.id if self._record else None,
            auto_start_pending=self._auto_start_handle is not None,
        )

    @property
    def current_record(self) -> Optional[SessionRecord]:
        return self._record

    @property
    def closed(self) -> bool:
        return self._closed

    def _display_value(self) -> int:
        return self._elapsed if self._reversed else self._remaining

    # ------------------------------------------------------------------
    # Commands

    def start(self, task_id: Optional[str] = None) -> TimerState:
        """Start a fresh session for the current mode; resumes when paused"""
        if self._closed or self._phase is TimerPhase.RUNNING:
            return self.state
        if self._phase is TimerPhase.PAUSED:
            return self.resume()

        self._cancel_auto_start()
        if task_id is not None:
            self._task_id = task_id

        now = self._clock()
        self._load_fresh_duration()
        if self._reversed:
            self._anchor_time = now
        else:
            self._target_time = now + self._remaining

        self._completion_fired = False
        self._record = SessionRecord(
            user_id=self.user_id,
            mode=self._mode,
            planned_duration_seconds=self._total,
            started_at=_timestamp(now),
            task_id=self._task_id,
        )
        self._phase = TimerPhase.RUNNING
        self.scheduler.arm(self._on_clock)
        logger.debug("Timer %s started %s session %s", self.user_id, self._mode.value, self._record.id)
        return self.state

    def pause(self) -> TimerState:
        if self._closed or self._phase is not TimerPhase.RUNNING:
            return self.state

        now = self._clock()
        self._update_clock(now)
        if self._has_run_out():
            self._complete(now)
            return self.state

        self.scheduler.release()
        if self._reversed:
            self._carried_seconds = max(0.0, now - self._anchor_time)
        else:
            self._carried_seconds = max(0.0, self._target_time - now)
        self._target_time = None
        self._anchor_time = None
        self._phase = TimerPhase.PAUSED
        return self.state

    def resume(self) -> TimerState:
        if self._closed or self._phase is not TimerPhase.PAUSED:
            return self.state

        now = self._clock()
        carried = self._carried_seconds
        self._carried_seconds = None
        if self._reversed:
            self._anchor_time = now - (self._elapsed if carried is None else carried)
        else:
            self._target_time = now + (self._remaining if carried is None else carried)
        self._phase = TimerPhase.RUNNING
        self.scheduler.arm(self._on_clock)
        return self.state

    def tick(self, now: Optional[float] = None) -> TimerState:
        """
        Recompute the displayed value from the wall clock.

        Forward mode counts down to a fixed target time, so late or
        throttled ticks never accumulate drift. Reaching zero completes the
        session exactly once. Reverse mode counts up and never completes.
        """
        if self._phase is not TimerPhase.RUNNING:
            return self.state

        if now is None:
            now = self._clock()
        self._update_clock(now)
        self.on_tick.emit(self._display_value(), self._total)

        if self._has_run_out():
            self._complete(now)
        return self.state

    def skip(self) -> TimerState:
        """
        Move to the next mode as if the session had completed, without the
        completion side effects: nothing is emitted or persisted. Skipping a
        Work session still counts it towards the long break.
        """
        if self._closed:
            return self.state

        self.scheduler.release()
        self._cancel_auto_start()
        if self._record is not None:
            logger.debug("Timer %s skipped session %s", self.user_id, self._record.id)
        self._record = None
        self._transition(natural=False)
        return self.state

    def stop(self) -> TimerState:
        """End the current session early and record it as not completed"""
        if self._closed or self._phase is TimerPhase.IDLE or self._record is None:
            return self.state

        now = self._clock()
        if self._phase is TimerPhase.RUNNING:
            self._update_clock(now)
            if self._has_run_out():
                self._complete(now)
                return self.state

        actual = self._elapsed if self._reversed else self._total - self._remaining
        record = self._record.finalize(actual, completed=False, completed_at=_timestamp(now))
        self._record = None
        self.scheduler.release()
        self._cancel_auto_start()
        self._phase = TimerPhase.IDLE
        self._load_fresh_duration()

        self.on_session_stopped.emit(record)
        self._persist(record)
        return self.state

    def reset(self) -> TimerState:
        """Back to a fresh duration in the current mode"""
        if self._closed:
            return self.state

        self.scheduler.release()
        self._cancel_auto_start()
        self._record = None
        self._phase = TimerPhase.IDLE
        self._completion_fired = False
        self._load_fresh_duration()
        return self.state

    def reset_all(self) -> TimerState:
        if self._closed:
            return self.state

        self.reset()
        self._mode = SessionMode.WORK
        self._sessions_completed = 0
        self._reversed = False
        self._load_fresh_duration()
        return self.state

    def toggle_reverse(self) -> TimerState:
        """Switch between counting down and counting up; only while idle"""
        if self._closed or self._phase is not TimerPhase.IDLE:
            return self.state

        self._reversed = not self._reversed
        self._load_fresh_duration()
        return self.state

    def set_cycle_length(self, cycle_length: int) -> TimerState:
        if isinstance(cycle_length, bool) or not isinstance(cycle_length, int) or cycle_length < 2:
            logger.warning("Ignoring invalid cycle length %r", cycle_length)
            return self.state

        self._cycle_length = cycle_length
        self.settings = self.settings.model_copy(update={"sessions_until_long_break": cycle_length})
        return self.state

    def apply_settings(self, settings: TimerSettings) -> TimerState:
        """Take new settings; a session in progress keeps its planned duration"""
        self.settings = settings
        self._cycle_length = settings.sessions_until_long_break
        if self._phase is TimerPhase.IDLE:
            self._load_fresh_duration()
        return self.state

    def retry_failed_records(self) -> int:
        """Persist records whose earlier persist failed; returns how many succeeded"""
        pending, self.failed_records = self.failed_records, []
        stored = 0
        for record in pending:
            if self._persist(record):
                stored += 1
        return stored

    def close(self) -> None:
        """Release the clock and any pending auto-start; the engine is dead afterwards"""
        if self._closed:
            return
        self.scheduler.release()
        self._cancel_auto_start()
        self._record = None
        self._phase = TimerPhase.IDLE
        self._closed = True

    # ------------------------------------------------------------------
    # Internals

    def _on_clock(self) -> None:
        self.tick(self._clock())

    def _load_fresh_duration(self) -> None:
        self._total = self.settings.duration_for(self._mode)
        self._remaining = self._total
        self._elapsed = 0
        self._target_time = None
        self._anchor_time = None
        self._carried_seconds = None

    def _update_clock(self, now: float) -> None:
        if self._reversed:
            if self._anchor_time is not None:
                self._elapsed = max(0, math.floor(now - self._anchor_time))
        elif self._target_time is not None:
            self._remaining = min(self._total, max(0, math.ceil(self._target_time - now)))

    def _has_run_out(self) -> bool:
        return not self._reversed and self._remaining <= 0

    def _complete(self, now: float) -> None:
        if self._completion_fired:
            return
        self._completion_fired = True
        self.scheduler.release()

        mode = self._mode
        record = self._record
        self._record = None
        self._phase = TimerPhase.IDLE

        if record is not None:
            actual = self._total - self._remaining
            record = record.finalize(actual, completed=True, completed_at=_timestamp(now))
            logger.info("Timer %s completed %s session %s", self.user_id, mode.value, record.id)
            self.on_session_complete.emit(record.id, mode, record.actual_duration_seconds)
            self._persist(record)

        self._transition(natural=True)

    def _transition(self, natural: bool) -> None:
        previous = self._mode
        if previous is SessionMode.WORK:
            self._sessions_completed += 1
            if self._sessions_completed % self._cycle_length == 0:
                next_mode = SessionMode.LONG_BREAK
            else:
                next_mode = SessionMode.SHORT_BREAK
        else:
            next_mode = SessionMode.WORK

        self.scheduler.release()
        self._cancel_auto_start()
        self._mode = next_mode
        self._phase = TimerPhase.IDLE
        self._load_fresh_duration()
        logger.debug("Timer %s switched %s -> %s", self.user_id, previous.value, next_mode.value)

        self.on_mode_change.emit(previous, next_mode, natural)
        self._schedule_auto_start(next_mode)

    def _schedule_auto_start(self, mode: SessionMode) -> None:
        if mode.is_break:
            wanted = self.settings.auto_start_breaks
        else:
            wanted = self.settings.auto_start_work
        if wanted and not self._closed:
            self._auto_start_handle = self.scheduler.call_later(self.auto_start_delay, self._auto_start)

    def _auto_start(self) -> None:
        self._auto_start_handle = None
        self.start()

    def _cancel_auto_start(self) -> None:
        if self._auto_start_handle is not None:
            self._auto_start_handle.cancel()
            self._auto_start_handle = None

    def _persist(self, record: SessionRecord) -> bool:
        if self.recorder is None:
            return True
        try:
            self.recorder.persist(record)
            return True
        except RecorderError as e:
            # Local timer state stays authoritative whatever the recorder says
            logger.warning("Could not persist session %s: %s", record.id, e)
            if e.retryable:
                self.failed_records.append(record)
            self.on_persist_error.emit(record, e)
            return False

import pytest
from datetime import date, datetime, timedelta, timezone

from app.database import SessionLocal
from app.schemas.sessions import SessionMode, SessionRecord
from app.schemas.stats import ActivitySnapshot, ActivityTier
from app.services.activity_aggregator import InvalidDateRangeError
from app.services.activity_service import ActivityService
from app.services.session_recorder import RecorderError, SqlSessionRecorder
from app.services.timer_clock import ManualTickScheduler
from app.services.timer_engine import TimerEngine

TODAY = date(2024, 3, 10)


class SnapshotRecorder:
    def __init__(self, snapshot=None, error=None):
        self.snapshot = snapshot or ActivitySnapshot()
        self.error = error
        self.calls = []

    def persist(self, record):
        return record

    def fetch_range(self, user_id, start_date, end_date):
        self.calls.append((user_id, start_date, end_date))
        if self.error is not None:
            raise self.error
        return self.snapshot


def work_session(day, hour=4):
    completed_at = datetime.combine(day, datetime.min.time()) + timedelta(hours=hour)
    return SessionRecord(
        user_id="user-1",
        mode=SessionMode.WORK,
        planned_duration_seconds=1500,
        started_at=completed_at - timedelta(minutes=25),
    ).finalize(1500, completed=True, completed_at=completed_at)


def make_service(records=(), **kwargs):
    recorder = SnapshotRecorder(ActivitySnapshot(session_records=list(records)))
    return ActivityService(recorder, today=lambda: TODAY, **kwargs), recorder


def test_window_metrics():
    pattern = [1, 1, 0, 1, 1, 1, 0]
    start = TODAY - timedelta(days=6)
    records = [work_session(start + timedelta(days=i)) for i, active in enumerate(pattern) if active]
    service, _ = make_service(records)

    window = service.get_activity("user-1", start, TODAY)

    assert len(window.days) == 7
    assert window.total_sessions == 5
    assert window.active_days == 5
    assert window.longest_streak == 3
    assert window.current_streak == 3
    assert window.consistency_percent == 71.4
    assert window.total_focus_minutes == 125
    assert window.recent_sessions == 5
    assert window.activity_tier == ActivityTier.LOW


def test_strict_current_streak():
    pattern = [1, 1, 0, 1, 1, 1, 0]
    start = TODAY - timedelta(days=6)
    records = [work_session(start + timedelta(days=i)) for i, active in enumerate(pattern) if active]
    service, _ = make_service(records, count_today_in_progress=False)

    window = service.get_activity("user-1", start, TODAY)

    assert window.current_streak == 0
    assert window.longest_streak == 3


def test_intensity_uses_raw_signal():
    records = [work_session(TODAY - timedelta(days=30)) for _ in range(5)]
    recorder = SnapshotRecorder(ActivitySnapshot(
        session_records=records,
        raw_intensity={TODAY - timedelta(days=30): 2},
    ))
    service = ActivityService(recorder, today=lambda: TODAY)
    day = TODAY - timedelta(days=30)

    # Two days keep the window in the medium tier (average 2.5, peak 5)
    activity, quiet = service.get_daily("user-1", day, day + timedelta(days=1))

    assert quiet.intensity_level == 0
    assert activity.session_count == 5
    assert activity.intensity_level == 4


def test_invalid_range_does_not_query():
    service, recorder = make_service()

    with pytest.raises(InvalidDateRangeError):
        service.get_activity("user-1", TODAY, TODAY - timedelta(days=1))
    assert recorder.calls == []


def test_recorder_error_propagates():
    recorder = SnapshotRecorder(error=RecorderError("database unavailable"))
    service = ActivityService(recorder, today=lambda: TODAY)

    with pytest.raises(RecorderError):
        service.get_activity("user-1", TODAY, TODAY)


def test_heatmap_defaults_to_last_year():
    service, recorder = make_service([work_session(TODAY)])

    heatmap = service.get_heatmap("user-1")

    assert recorder.calls == [("user-1", TODAY - timedelta(days=365), TODAY)]
    assert len(heatmap.activity.days) == 366
    today_cells = [cell for week in heatmap.grid.weeks for cell in week if cell.is_today]
    assert len(today_cells) == 1
    assert today_cells[0].session_count == 1
    assert heatmap.grid.month_labels


def test_completed_timer_session_shows_up_in_activity():
    """A full 1500 s Work session adds one session and 25 focus minutes to its civil day"""
    recorder = SqlSessionRecorder(SessionLocal)
    scheduler = ManualTickScheduler()
    base = datetime(2024, 3, 10, 2, 0, tzinfo=timezone.utc).timestamp()
    engine = TimerEngine(recorder=recorder, scheduler=scheduler,
                         clock=lambda: base + scheduler.now, user_id="user-1")
    service = ActivityService(recorder, today=lambda: TODAY)

    [before] = service.get_daily("user-1", TODAY, TODAY)
    engine.start()
    scheduler.advance(1500)
    [after] = service.get_daily("user-1", TODAY, TODAY)

    assert after.session_count == before.session_count + 1
    assert after.total_focus_minutes == before.total_focus_minutes + 25
    assert engine.failed_records == []

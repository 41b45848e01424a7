import pytest

from app.api import metrics
from app.schemas.sessions import SessionMode
from app.schemas.timer import TimerSettings
from app.services.timer_clock import ManualTickScheduler
from app.services.timer_service import TimerRegistry


def sample(name, labels=None):
    return metrics.registry.get_sample_value(name, labels or {}) or 0.0


class FakeClock:
    def __init__(self):
        self.now = 1_700_000_000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    registry = TimerRegistry(
        default_settings=TimerSettings(work_duration_seconds=10),
        scheduler_factory=ManualTickScheduler,
        clock=clock,
    )
    yield registry
    registry.close_all()


def test_get_creates_one_engine_per_user(registry):
    engine = registry.get("alice")

    assert registry.get("alice") is engine
    assert registry.get("bob") is not engine
    assert len(registry) == 2
    assert "alice" in registry
    assert engine.user_id == "alice"
    assert engine.state.total_seconds == 10


def test_engines_are_isolated(registry):
    registry.get("alice").start()

    assert registry.get("alice").state.running is True
    assert registry.get("bob").state.running is False


def test_discard_closes_engine(registry):
    engine = registry.get("alice")
    engine.start()
    registry.discard("alice")

    assert engine.closed is True
    assert "alice" not in registry
    assert sample("focus_active_timers") == 0.0


def test_active_timer_gauge(registry):
    registry.get("alice")
    registry.get("bob")

    assert sample("focus_active_timers") == 2.0


def test_close_all(registry):
    engines = [registry.get(name) for name in ("a", "b", "c")]
    registry.close_all()

    assert len(registry) == 0
    assert all(engine.closed for engine in engines)


def test_session_metrics(registry, clock):
    completed_before = sample("focus_sessions_completed_total", {"mode": "work"})
    skipped_before = sample("focus_sessions_skipped_total", {"mode": "short_break"})
    stopped_before = sample("focus_sessions_stopped_total", {"mode": "work"})

    engine = registry.get("alice")
    engine.start()
    clock.now += 10
    engine.tick()
    assert engine.state.mode == SessionMode.SHORT_BREAK
    engine.skip()
    engine.start()
    engine.stop()

    assert sample("focus_sessions_completed_total", {"mode": "work"}) == completed_before + 1
    assert sample("focus_sessions_skipped_total", {"mode": "short_break"}) == skipped_before + 1
    assert sample("focus_sessions_stopped_total", {"mode": "work"}) == stopped_before + 1


def test_idle_engines_evicted_after_ttl(registry, clock):
    idle = registry.get("alice")
    busy = registry.get("bob")
    busy.start()

    clock.now += registry.idle_ttl_seconds + 1
    registry.get("carol")

    assert "alice" not in registry
    assert idle.closed is True
    assert "bob" in registry
    assert busy.state.running is True
    assert len(registry) == 2


def test_recent_use_keeps_engine(registry, clock):
    registry.get("alice")
    clock.now += registry.idle_ttl_seconds - 1
    registry.get("alice")
    clock.now += 2

    assert registry.evict_idle() == 0
    assert "alice" in registry


def test_engine_waiting_on_failed_record_is_kept(registry, clock):
    engine = registry.get("alice")
    engine.failed_records.append(object())

    clock.now += registry.idle_ttl_seconds + 1

    assert registry.evict_idle() == 0
    assert "alice" in registry


def test_cap_evicts_least_recently_used_idle_engine(clock):
    registry = TimerRegistry(scheduler_factory=ManualTickScheduler, clock=clock, max_engines=2)
    registry.get("alice")
    clock.now += 1
    registry.get("bob")
    clock.now += 1
    registry.get("alice")

    registry.get("carol")

    assert "bob" not in registry
    assert "alice" in registry
    assert "carol" in registry
    assert sample("focus_active_timers") == 2.0
    registry.close_all()


def test_cap_never_evicts_running_engines(clock):
    registry = TimerRegistry(scheduler_factory=ManualTickScheduler, clock=clock, max_engines=1)
    registry.get("alice").start()

    registry.get("bob")

    assert registry.get("alice").state.running is True
    assert len(registry) == 2
    registry.close_all()

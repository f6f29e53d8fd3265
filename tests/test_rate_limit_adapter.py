"""Unit tests for the thread-based sliding-window rate limiter."""

import logging
import threading
import time
from datetime import timedelta

import pytest

from app.adapters.rate_limit.cancellation import CancellationToken
from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.adapters.rate_limit.ring_buffer import TimestampRingBuffer
from app.adapters.rate_limit.window import SlidingWindow
from app.core.errors import AcquireCancelledError, InvalidConfigurationError


class FakeClock:
    """Deterministic clock; the fake waiter advances it instead of sleeping."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start
        self.waits: list[float | None] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def waiter(self, condition: threading.Condition, timeout: float | None) -> None:
        assert timeout is not None, "single-threaded test would block forever"
        self.waits.append(timeout)
        self.advance(timeout)


class RecordingRingBuffer(TimestampRingBuffer):
    """Ring buffer that remembers every timestamp ever appended."""

    def __init__(self, capacity: int) -> None:
        super().__init__(capacity)
        self.granted: list[float] = []

    def append(self, timestamp: float) -> None:
        super().append(timestamp)
        self.granted.append(timestamp)


def _install_recorder(limiter) -> RecordingRingBuffer:
    recorder = RecordingRingBuffer(limiter.limit)
    limiter._window.history = recorder
    return recorder


def _assert_rate_bound(granted: list[float], limit: int, window: float) -> None:
    # Grant i+limit is only possible once grant i has left the window.
    ordered = sorted(granted)
    for i in range(len(ordered) - limit):
        assert ordered[i + limit] - ordered[i] >= window - 1e-9


def _fake_limiter(clock: FakeClock, **kwargs) -> InMemorySlidingWindowRateLimiter:
    return InMemorySlidingWindowRateLimiter(clock=clock, waiter=clock.waiter, **kwargs)


def test_grants_up_to_limit_without_waiting() -> None:
    clock = FakeClock()
    limiter = _fake_limiter(clock, limit=3, window_seconds=1.0)

    for _ in range(3):
        limiter.acquire()

    assert clock.waits == []
    snapshot = limiter.snapshot()
    assert snapshot.in_window == 3
    assert snapshot.available == 0
    assert snapshot.retry_after_seconds == pytest.approx(1.0)


def test_second_call_waits_remaining_window() -> None:
    clock = FakeClock()
    limiter = _fake_limiter(clock, limit=1, window_seconds=1.0)

    limiter.acquire()
    clock.advance(0.25)
    limiter.acquire()

    assert clock.waits == [pytest.approx(0.75)]
    assert clock.now == pytest.approx(101.0)
    assert limiter.snapshot().in_window == 1


def test_rate_bound_holds_over_every_trailing_window() -> None:
    clock = FakeClock()
    limiter = _fake_limiter(clock, limit=3, window_seconds=1.0)
    recorder = _install_recorder(limiter)

    gaps = [0.0, 0.1, 0.05, 0.4, 0.0, 0.9, 0.2, 0.0, 0.0, 1.5, 0.3, 0.01] * 3
    for gap in gaps:
        clock.advance(gap)
        limiter.acquire()

    assert len(recorder.granted) == len(gaps)
    _assert_rate_bound(recorder.granted, limit=3, window=1.0)


def test_window_is_right_open() -> None:
    clock = FakeClock()
    limiter = _fake_limiter(clock, limit=1, window_seconds=1.0)

    assert limiter.try_acquire() is True

    clock.advance(0.75)
    assert limiter.try_acquire() is False

    clock.advance(0.25)
    assert limiter.try_acquire() is True


def test_try_acquire_never_waits() -> None:
    clock = FakeClock()
    limiter = _fake_limiter(clock, limit=2, window_seconds=10.0)

    assert limiter.try_acquire() is True
    assert limiter.try_acquire() is True
    assert limiter.try_acquire() is False

    assert clock.waits == []
    assert limiter.snapshot().in_window == 2


def test_clock_going_backwards_keeps_history_ordered() -> None:
    window = SlidingWindow(limit=3, window_seconds=1.0)

    assert window.try_record(5.0)
    assert window.try_record(4.0)
    assert window.try_record(4.5)

    assert list(window.history) == [5.0, 5.0, 5.0]
    assert window.wait_seconds(4.0) > 0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0, "window_seconds": 1.0},
        {"limit": -1, "window_seconds": 1.0},
        {"limit": 1.5, "window_seconds": 1.0},
        {"limit": True, "window_seconds": 1.0},
        {"limit": 1, "window_seconds": 0},
        {"limit": 1, "window_seconds": -2.0},
        {"limit": 1, "window_seconds": timedelta(0)},
        {"limit": 1, "window_seconds": float("nan")},
        {"limit": 1, "window_seconds": float("inf")},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(InvalidConfigurationError) as exc:
        InMemorySlidingWindowRateLimiter(**kwargs)
    assert exc.value.code == "invalid_rate_limit_config"


def test_per_interval_accepts_timedelta() -> None:
    limiter = InMemorySlidingWindowRateLimiter.per_interval(5, timedelta(minutes=1))

    assert limiter.limit == 5
    assert limiter.window_seconds == 60.0


def test_pre_cancelled_token_grants_nothing() -> None:
    clock = FakeClock()
    limiter = _fake_limiter(clock, limit=1, window_seconds=1.0)
    token = CancellationToken()
    token.cancel()

    with pytest.raises(AcquireCancelledError):
        limiter.acquire(cancel_token=token)

    assert limiter.snapshot().in_window == 0


def test_cancel_during_wait_leaves_history_unchanged() -> None:
    clock = FakeClock()
    token = CancellationToken()

    def cancelling_waiter(condition, timeout):
        token.cancel()

    limiter = InMemorySlidingWindowRateLimiter(
        limit=1, window_seconds=1.0, clock=clock, waiter=cancelling_waiter
    )
    limiter.acquire()

    with pytest.raises(AcquireCancelledError) as exc:
        limiter.acquire(cancel_token=token)

    assert exc.value.code == "rate_limit_acquire_cancelled"
    assert limiter.snapshot().in_window == 1


def test_cancel_wakes_blocked_thread_promptly() -> None:
    limiter = InMemorySlidingWindowRateLimiter(limit=1, window_seconds=30.0)
    limiter.acquire()
    token = CancellationToken()
    errors: list[Exception] = []

    def _blocked() -> None:
        try:
            limiter.acquire(cancel_token=token)
        except AcquireCancelledError as exc:
            errors.append(exc)

    thread = threading.Thread(target=_blocked)
    thread.start()
    time.sleep(0.05)
    token.cancel()
    thread.join(timeout=2.0)

    assert not thread.is_alive()
    assert len(errors) == 1
    assert limiter.snapshot().in_window == 1


def test_second_thread_blocks_until_first_permit_expires() -> None:
    window = 0.5
    limiter = InMemorySlidingWindowRateLimiter(limit=1, window_seconds=window)
    start = time.monotonic()
    limiter.acquire()
    returned_at: list[float] = []

    def _caller() -> None:
        limiter.acquire()
        returned_at.append(time.monotonic())

    time.sleep(0.05)
    thread = threading.Thread(target=_caller)
    thread.start()
    thread.join(timeout=5.0)

    assert returned_at
    elapsed = returned_at[0] - start
    assert elapsed >= window
    assert elapsed < window + 0.4


def test_concurrent_callers_never_exceed_limit() -> None:
    limiter = InMemorySlidingWindowRateLimiter(limit=4, window_seconds=0.2)
    recorder = _install_recorder(limiter)
    barrier = threading.Barrier(16)

    def _caller() -> None:
        barrier.wait()
        limiter.acquire()

    threads = [threading.Thread(target=_caller) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10.0)

    assert all(not t.is_alive() for t in threads)
    assert len(recorder.granted) == 16
    _assert_rate_bound(recorder.granted, limit=4, window=0.2)


def test_closed_loop_callers_within_limit_are_not_starved() -> None:
    limiter = InMemorySlidingWindowRateLimiter(limit=2, window_seconds=0.05)
    completed = [0, 0]

    def _loop(idx: int) -> None:
        for _ in range(5):
            limiter.acquire()
            completed[idx] += 1

    threads = [threading.Thread(target=_loop, args=(i,)) for i in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5.0)

    assert completed == [5, 5]


def test_fair_mode_grants_in_arrival_order() -> None:
    limiter = InMemorySlidingWindowRateLimiter(limit=1, window_seconds=0.1, fair=True)
    limiter.acquire()
    order: list[int] = []

    def _caller(idx: int) -> None:
        limiter.acquire()
        order.append(idx)

    threads = []
    for idx in range(4):
        thread = threading.Thread(target=_caller, args=(idx,))
        thread.start()
        threads.append(thread)
        time.sleep(0.02)
    for t in threads:
        t.join(timeout=5.0)

    assert order == [0, 1, 2, 3]


def test_fair_mode_cancelled_waiter_leaves_queue() -> None:
    limiter = InMemorySlidingWindowRateLimiter(limit=1, window_seconds=0.2, fair=True)
    limiter.acquire()
    token = CancellationToken()
    outcome: dict[str, object] = {}

    def _first() -> None:
        try:
            limiter.acquire(cancel_token=token)
        except AcquireCancelledError as exc:
            outcome["first"] = exc

    def _second() -> None:
        limiter.acquire()
        outcome["second"] = time.monotonic()

    first = threading.Thread(target=_first)
    first.start()
    time.sleep(0.02)
    second = threading.Thread(target=_second)
    second.start()
    time.sleep(0.02)
    token.cancel()

    first.join(timeout=2.0)
    second.join(timeout=2.0)

    assert isinstance(outcome["first"], AcquireCancelledError)
    assert "second" in outcome
    assert limiter.snapshot().in_window <= 1


class LockStateHandler(logging.Handler):
    """Records whether the limiter's condition is held when a record is emitted."""

    def __init__(self, limiter: InMemorySlidingWindowRateLimiter) -> None:
        super().__init__(level=logging.DEBUG)
        self.limiter = limiter
        self.seen: list[tuple[str, bool]] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.seen.append((record.getMessage(), self.limiter._condition._is_owned()))


@pytest.fixture
def limiter_logger():
    logger = logging.getLogger("app.adapters.rate_limit.in_memory")
    previous = logger.level
    logger.setLevel(logging.DEBUG)
    yield logger
    logger.setLevel(previous)


def test_logs_are_written_with_condition_released(limiter_logger) -> None:
    clock = FakeClock()
    token = CancellationToken()

    def cancelling_waiter(condition, timeout):
        token.cancel()

    limiter = InMemorySlidingWindowRateLimiter(
        limit=1, window_seconds=1.0, clock=clock, waiter=cancelling_waiter
    )
    handler = LockStateHandler(limiter)
    limiter_logger.addHandler(handler)
    try:
        limiter.acquire()
        with pytest.raises(AcquireCancelledError):
            limiter.acquire(cancel_token=token)
    finally:
        limiter_logger.removeHandler(handler)

    assert handler.seen == [("rate_limit.granted", False), ("rate_limit.cancelled", False)]

"""
Tests for the in-memory AI preview rate limiter.

Time is driven by a fake clock so window expiry is deterministic.
"""
import pytest

from healthymeal.engine.rate_limiter import RateLimitEntry, RateLimiter


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock) -> RateLimiter:
    return RateLimiter(max_requests=10, window_seconds=60, clock=clock)


class TestWindowBound:
    """N requests per window, the next one denied."""

    def test_first_ten_allowed_eleventh_denied(self, limiter):
        decisions = [limiter.check("u1") for _ in range(11)]

        assert all(d.allowed for d in decisions[:10])
        assert decisions[10].allowed is False
        assert 1 <= decisions[10].retry_after_seconds <= 60

    def test_allowed_decisions_carry_no_retry_after(self, limiter):
        assert limiter.check("u1").retry_after_seconds is None

    def test_denied_requests_do_not_advance_counter(self, limiter):
        for _ in range(15):
            limiter.check("u1")

        assert limiter.status("u1").count == 10

    def test_retry_after_rounds_up(self, limiter, clock):
        for _ in range(10):
            limiter.check("u1")

        clock.advance(30.2)
        decision = limiter.check("u1")

        # 29.8 seconds left in the window
        assert decision.retry_after_seconds == 30

    def test_retry_after_at_window_edge(self, limiter, clock):
        """Exactly at window_reset_at the window is still active."""
        for _ in range(10):
            limiter.check("u1")

        clock.advance(60)
        decision = limiter.check("u1")

        assert decision.allowed is False
        assert decision.retry_after_seconds == 0


class TestWindowReset:
    """A fresh window starts on the first request after expiry."""

    def test_allows_again_after_window(self, limiter, clock):
        for _ in range(11):
            limiter.check("u1")

        clock.advance(61)

        assert limiter.check("u1").allowed is True
        assert limiter.status("u1").count == 1

    def test_new_window_starts_at_first_post_expiry_request(self, limiter, clock):
        limiter.check("u1")
        clock.advance(100)
        limiter.check("u1")

        assert limiter.status("u1").window_reset_at == clock.now + 60


class TestIdentityIsolation:
    """Exhausting one identity never affects another."""

    def test_other_identity_unaffected(self, limiter):
        for _ in range(11):
            limiter.check("u1")

        assert limiter.check("u2").allowed is True
        assert limiter.status("u2").count == 1


class TestResetAndClear:
    """Tests for reset and clear_all."""

    def test_reset_restores_full_budget(self, limiter):
        for _ in range(10):
            limiter.check("u1")

        limiter.reset("u1")

        assert limiter.status("u1") is None
        assert all(limiter.check("u1").allowed for _ in range(10))

    def test_reset_unknown_identity_is_noop(self, limiter):
        limiter.reset("nobody")
        assert limiter.size == 0

    def test_clear_all(self, limiter):
        limiter.check("u1")
        limiter.check("u2")

        limiter.clear_all()

        assert limiter.size == 0

    def test_sweep_after_clear_all_removes_nothing(self, limiter, clock):
        limiter.check("u1")
        clock.advance(61)

        limiter.clear_all()

        assert limiter.sweep() == 0
        assert limiter.size == 0


class TestStatus:
    """status() peeks without counting."""

    def test_absent_identity(self, limiter):
        assert limiter.status("u1") is None

    def test_does_not_advance_counter(self, limiter):
        limiter.check("u1")
        limiter.status("u1")
        limiter.status("u1")

        assert limiter.status("u1").count == 1

    def test_returns_copy(self, limiter):
        limiter.check("u1")

        entry = limiter.status("u1")
        entry.count = 99

        assert limiter.status("u1").count == 1

    def test_expired_entry_reported_absent_but_kept(self, limiter, clock):
        limiter.check("u1")
        clock.advance(61)

        assert limiter.status("u1") is None
        assert limiter.size == 1


class TestSweep:
    """Expired-entry sweep."""

    def test_removes_only_expired_entries(self, limiter, clock):
        limiter.check("old")
        clock.advance(45)
        limiter.check("fresh")
        clock.advance(20)

        removed = limiter.sweep()

        assert removed == 1
        assert limiter.size == 1
        assert limiter.status("fresh") is not None

    def test_sweep_is_idempotent(self, limiter, clock):
        limiter.check("u1")
        clock.advance(61)

        assert limiter.sweep() == 1
        assert limiter.sweep() == 0

    def test_sweep_does_not_change_decisions(self, clock):
        """Lazy expiry alone decides; sweeping only frees memory."""
        swept = RateLimiter(max_requests=2, window_seconds=60, clock=clock)
        unswept = RateLimiter(max_requests=2, window_seconds=60, clock=clock)

        results = {"swept": [], "unswept": []}
        for step in range(8):
            for name, limiter in (("swept", swept), ("unswept", unswept)):
                results[name].append(limiter.check("u1").allowed)
            swept.sweep()
            clock.advance(25)

        assert results["swept"] == results["unswept"]


class TestEntry:
    def test_is_expired_strictly_after_reset(self):
        entry = RateLimitEntry(count=1, window_reset_at=100.0)

        assert entry.is_expired(100.0) is False
        assert entry.is_expired(100.001) is True


class TestConstruction:
    def test_rejects_zero_max_requests(self):
        with pytest.raises(ValueError):
            RateLimiter(max_requests=0)

    def test_rejects_non_positive_window(self):
        with pytest.raises(ValueError):
            RateLimiter(window_seconds=0)


class TestLifecycle:
    """start() schedules the sweep, shutdown() stops it and clears state."""

    def test_start_and_shutdown(self, limiter):
        limiter.start()
        try:
            assert limiter.running is True
            limiter.start()  # second call is a no-op
            assert limiter.running is True
        finally:
            limiter.check("u1")
            limiter.shutdown()

        assert limiter.running is False
        assert limiter.size == 0

    def test_shutdown_without_start(self, limiter):
        limiter.check("u1")
        limiter.shutdown()

        assert limiter.size == 0

    def test_can_restart_after_shutdown(self, limiter):
        limiter.start()
        limiter.shutdown()
        limiter.start()
        try:
            assert limiter.running is True
        finally:
            limiter.shutdown()

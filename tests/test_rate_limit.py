"""
Tests for anonymous sliding-window rate limiting.

Tests cover:
- Quota counting and blocking per client key
- Window expiration (clock is patched, no sleeping)
- Status reporting without consuming quota
- Eviction of expired buckets
"""

from collections import deque
from unittest.mock import patch

from backend.rate_limit import RateLimitStatus, check_rate_limit, evict_expired, rate_limit_status

KEY = "symptoms:203.0.113.7"


class FakeClock:
    """Controllable replacement for time.time()."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _hit(store, clock, max_requests=10, window=3600):
    with patch("backend.rate_limit.time.time", clock):
        return check_rate_limit(store, key=KEY, max_requests=max_requests, window_seconds=window)


def _status(store, clock, max_requests=10, window=3600):
    with patch("backend.rate_limit.time.time", clock):
        return rate_limit_status(store, key=KEY, max_requests=max_requests, window_seconds=window)


def test_first_request_allowed():
    """First request from a client is allowed with no retry delay."""
    store, clock = {}, FakeClock()

    assert _hit(store, clock) == (True, 0)
    assert isinstance(store[KEY], deque)


def test_eleventh_request_in_hour_blocked():
    """Default policy: 10 requests per hour."""
    store, clock = {}, FakeClock()

    for i in range(10):
        allowed, _ = _hit(store, clock)
        assert allowed is True, f"Request {i+1} of 10 should be allowed"
        clock.advance(1)

    allowed, retry_after = _hit(store, clock)
    assert allowed is False
    # Oldest request was 10s ago: it leaves the window in 3590s
    assert retry_after == 3591


def test_blocked_request_is_not_recorded():
    """A rejected request does not extend the client's penalty."""
    store, clock = {}, FakeClock()

    for _ in range(3):
        _hit(store, clock, max_requests=3)
    for _ in range(5):
        _hit(store, clock, max_requests=3)

    assert len(store[KEY]) == 3


def test_window_expiration_restores_quota():
    """Requests older than the window stop counting."""
    store, clock = {}, FakeClock()

    for _ in range(2):
        _hit(store, clock, max_requests=2, window=60)
    assert _hit(store, clock, max_requests=2, window=60)[0] is False

    clock.advance(61)
    assert _hit(store, clock, max_requests=2, window=60) == (True, 0)


def test_sliding_window_releases_oldest_first():
    """Only the oldest request slides out, not the whole bucket."""
    store, clock = {}, FakeClock()

    _hit(store, clock, max_requests=2, window=60)
    clock.advance(40)
    _hit(store, clock, max_requests=2, window=60)
    assert _hit(store, clock, max_requests=2, window=60)[0] is False

    clock.advance(21)
    assert _hit(store, clock, max_requests=2, window=60)[0] is True
    assert _hit(store, clock, max_requests=2, window=60)[0] is False


def test_clients_are_independent():
    """Different client keys have separate buckets in the same store."""
    store, clock = {}, FakeClock()

    for _ in range(3):
        _hit(store, clock, max_requests=3)

    with patch("backend.rate_limit.time.time", clock):
        allowed_other, _ = check_rate_limit(
            store, key="symptoms:198.51.100.1", max_requests=3, window_seconds=3600
        )
    assert allowed_other is True
    assert _hit(store, clock, max_requests=3)[0] is False


def test_zero_max_requests_blocks_all():
    """Edge case: a zero quota rejects everything."""
    allowed, retry_after = check_rate_limit({}, key=KEY, max_requests=0, window_seconds=60)

    assert allowed is False
    assert retry_after >= 1


# ============================================================================
# STATUS
# ============================================================================


def test_status_unknown_bucket_has_full_quota():
    """No requests yet: full quota, reset one window from now."""
    clock = FakeClock()

    status = _status({}, clock)

    assert status == RateLimitStatus(remaining=10, reset_at=clock.now + 3600)


def test_status_counts_recorded_requests():
    """Remaining decreases with each allowed request; reset follows the oldest."""
    store, clock = {}, FakeClock()
    first = clock.now

    for _ in range(4):
        _hit(store, clock)
        clock.advance(5)

    status = _status(store, clock)
    assert status.remaining == 6
    assert status.reset_at == first + 3600


def test_status_does_not_consume_quota():
    """Reading the status never records a request."""
    store, clock = {}, FakeClock()
    _hit(store, clock)

    for _ in range(5):
        _status(store, clock)

    assert len(store[KEY]) == 1


def test_status_after_window_expiry():
    """Expired requests are purged before reporting."""
    store, clock = {}, FakeClock()
    for _ in range(10):
        _hit(store, clock)

    assert _status(store, clock).remaining == 0

    clock.advance(3601)
    status = _status(store, clock)
    assert status.remaining == 10
    assert status.reset_at == clock.now + 3600


# ============================================================================
# EVICTION
# ============================================================================


def test_evict_expired_drops_idle_buckets_only():
    """Buckets with no request in the window are deleted, active ones kept."""
    store, clock = {}, FakeClock()
    with patch("backend.rate_limit.time.time", clock):
        check_rate_limit(store, key="symptoms:old", max_requests=10, window_seconds=60)
        clock.advance(61)
        check_rate_limit(store, key="symptoms:new", max_requests=10, window_seconds=60)

        removed = evict_expired(store, window_seconds=60, prefix="symptoms:")

    assert removed == 1
    assert set(store) == {"symptoms:new"}


def test_evict_expired_ignores_other_keys():
    """Non-deque values and keys outside the prefix are untouched."""
    clock = FakeClock()
    store = {
        "session_id": "abc",
        "other:stale": deque([clock.now - 500]),
        "symptoms:stale": deque([clock.now - 500]),
    }

    with patch("backend.rate_limit.time.time", clock):
        evict_expired(store, window_seconds=60, prefix="symptoms:")

    assert set(store) == {"session_id", "other:stale"}


def test_evicted_client_gets_full_quota_again():
    store, clock = {}, FakeClock()
    for _ in range(3):
        _hit(store, clock, max_requests=3, window=60)

    clock.advance(61)
    with patch("backend.rate_limit.time.time", clock):
        evict_expired(store, window_seconds=60)

    assert KEY not in store
    assert _hit(store, clock, max_requests=3, window=60) == (True, 0)

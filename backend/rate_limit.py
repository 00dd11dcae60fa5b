"""
Sliding-window rate limiting for anonymous symptom checks.

Design decisions:
- Sliding window algorithm: Smoother than fixed windows, no burst at boundaries
- Any MutableMapping as store: Streamlit session_state in the UI, a plain dict
  (module-level, per process) in tests or a request handler
- One bucket per client key (e.g. "symptoms:<client ip>")
- deque for O(1) operations: Efficient timestamp management

Limitations:
- In-memory: Lost on restart
- Single-node: Not suitable for distributed deployment
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, MutableMapping


@dataclass(frozen=True)
class RateLimitStatus:
    """Remaining quota for a bucket and when the oldest request leaves the window."""

    remaining: int
    reset_at: float  # epoch seconds


def _purge(dq: Deque[float], now: float, window_seconds: int) -> None:
    cutoff = now - window_seconds
    while dq and dq[0] < cutoff:
        dq.popleft()


def check_rate_limit(
    state: MutableMapping[str, Any],
    key: str,
    max_requests: int,
    window_seconds: int,
) -> tuple[bool, int]:
    """
    Check and record a request using a sliding window.

    Args:
        state: Streamlit session state or any mutable mapping
        key: Unique key for this rate limit bucket
        max_requests: Maximum requests allowed in window
        window_seconds: Window duration in seconds

    Returns:
        Tuple of (allowed, retry_after_seconds)

    Usage:
        allowed, retry = check_rate_limit(store, f"symptoms:{client_ip}", 10, 3600)
        if not allowed:
            ...  # 429, retry in `retry` seconds
    """
    # Zero or negative max_requests always blocks
    if max_requests <= 0:
        return False, max(1, window_seconds)

    now = time.time()
    dq: Deque[float] | None = state.get(key)
    if dq is None:
        dq = deque()
        state[key] = dq

    _purge(dq, now, window_seconds)

    if len(dq) >= max_requests:
        retry_after = int(dq[0] + window_seconds - now) + 1
        return False, max(1, retry_after)

    dq.append(now)
    return True, 0


def rate_limit_status(
    state: MutableMapping[str, Any],
    key: str,
    max_requests: int,
    window_seconds: int,
) -> RateLimitStatus:
    """
    Report the remaining quota without recording a request.

    An unknown or empty bucket has the full quota and resets one window from now.
    """
    now = time.time()
    dq: Deque[float] | None = state.get(key)
    if not dq:
        return RateLimitStatus(remaining=max(0, max_requests), reset_at=now + window_seconds)

    _purge(dq, now, window_seconds)
    if not dq:
        return RateLimitStatus(remaining=max(0, max_requests), reset_at=now + window_seconds)

    return RateLimitStatus(
        remaining=max(0, max_requests - len(dq)),
        reset_at=dq[0] + window_seconds,
    )


def evict_expired(
    state: MutableMapping[str, Any],
    window_seconds: int,
    prefix: str = "",
) -> int:
    """
    Delete buckets under `prefix` whose requests have all left the window.

    Keeps a long-lived store (one bucket per client ip) bounded by the
    clients active in the last window. Values that are not deques are left
    alone, so a Streamlit session_state can be passed as is.

    Returns:
        Number of buckets deleted
    """
    now = time.time()
    stale = []
    for key in list(state.keys()):
        dq = state.get(key)
        if not isinstance(key, str) or not key.startswith(prefix) or not isinstance(dq, deque):
            continue
        _purge(dq, now, window_seconds)
        if not dq:
            stale.append(key)
    for key in stale:
        del state[key]
    return len(stale)

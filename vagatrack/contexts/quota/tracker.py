"""
Dual-dimension quota tracker for LLM-backed endpoints.

Tracks two independent fixed windows per client:
- a short request window (e.g. 15 requests per 60s) against call spam
- a long token window (e.g. 1M tokens per 24h) against cumulative cost

Usage pattern ("peek before commit"):
    result = tracker.check(client_id)
    if result.allowed:
        tracker.consume_request(client_id)
        response = call_llm(...)
        tracker.consume_tokens(client_id, response.total_tokens)

Known limitations of the fixed-window design, accepted as-is:
- A client can burst up to 2x the ceiling across a window seam.
- check() and consume_request() are separate steps, so two concurrent requests
  for the same client can both be allowed before either is counted. Each single
  check/consume step is atomic (one tracker lock), the pair is not.
- State lives in the injected mapping; the default dict is per-process and is
  lost on restart.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, MutableMapping, Optional

from vagatrack.contexts.quota.config import QuotaConfig
from vagatrack.contexts.quota.logger import _log_debug, _log_warning, log_cleanup


@dataclass
class QuotaEntry:
    """Per-client counters and the epoch-second boundaries of their windows."""

    request_count: int
    request_window_reset_at: float
    tokens_consumed: int
    token_window_reset_at: float

    def is_expired(self, now: float) -> bool:
        """True once both windows have passed their reset boundary."""
        return now >= self.request_window_reset_at and now >= self.token_window_reset_at


@dataclass(frozen=True)
class QuotaPair:
    """A value per quota dimension."""

    requests: int
    tokens: int


@dataclass(frozen=True)
class ResetTimes:
    """Epoch seconds at which each dimension's window resets."""

    requests: float
    tokens: float


@dataclass(frozen=True)
class QuotaCheckResult:
    """Outcome of an admission check."""

    allowed: bool
    remaining: QuotaPair
    limit: QuotaPair
    reset_time: ResetTimes

    @property
    def requests_exhausted(self) -> bool:
        return self.remaining.requests <= 0

    @property
    def tokens_exhausted(self) -> bool:
        return self.remaining.tokens <= 0


def is_valid_client_id(client_id: object) -> bool:
    """Client ids must be non-blank strings."""
    return isinstance(client_id, str) and client_id.strip() != ""


class QuotaTracker:
    """
    Admission control keyed by client identifier.

    Args:
        config: Ceilings and window lengths (defaults to QuotaConfig())
        store: Mapping of client id to QuotaEntry (defaults to a new dict).
            Entries are written back after every mutation, so any
            MutableMapping implementation can back the tracker.
        clock: Returns the current time in epoch seconds
    """

    def __init__(
        self,
        config: Optional[QuotaConfig] = None,
        store: Optional[MutableMapping[str, QuotaEntry]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or QuotaConfig()
        self._store = store if store is not None else {}
        self.clock = clock
        self._lock = threading.Lock()
        self._last_cleanup = clock()

    @property
    def limit(self) -> QuotaPair:
        return QuotaPair(requests=self.config.max_requests, tokens=self.config.max_tokens)

    def __len__(self) -> int:
        return len(self._store)

    def check(self, client_id: str) -> QuotaCheckResult:
        """
        Report whether client_id may make another call. Never increments.

        Invalid identifiers fail closed: allowed=False with nothing remaining.
        """
        now = self.clock()

        if not is_valid_client_id(client_id):
            _log_warning("Invalid client identifier provided, denying")
            return QuotaCheckResult(
                allowed=False,
                remaining=QuotaPair(requests=0, tokens=0),
                limit=self.limit,
                reset_time=ResetTimes(requests=now, tokens=now),
            )

        with self._lock:
            self._maybe_cleanup(now)
            # Unseen clients get a fresh view without a stored entry
            if client_id in self._store:
                entry = self._current_entry(client_id, now)
            else:
                entry = self._fresh_entry(now)
            request_count = entry.request_count
            tokens_consumed = entry.tokens_consumed
            reset_time = ResetTimes(
                requests=entry.request_window_reset_at, tokens=entry.token_window_reset_at
            )

        allowed = request_count < self.config.max_requests and tokens_consumed < self.config.max_tokens

        return QuotaCheckResult(
            allowed=allowed,
            remaining=QuotaPair(
                requests=max(0, self.config.max_requests - request_count),
                tokens=max(0, self.config.max_tokens - tokens_consumed),
            ),
            limit=self.limit,
            reset_time=reset_time,
        )

    def consume_request(self, client_id: str) -> int:
        """
        Count one request against the current request window.

        Does not enforce the ceiling; call check() first.

        Returns:
            Request count in the current window (0 if client_id is invalid)
        """
        if not is_valid_client_id(client_id):
            _log_warning("consume_request called with invalid client identifier, ignoring")
            return 0

        now = self.clock()
        with self._lock:
            self._maybe_cleanup(now)
            entry = self._current_entry(client_id, now)
            entry.request_count += 1
            self._store[client_id] = entry
            return entry.request_count

    def consume_tokens(self, client_id: str, tokens: int) -> int:
        """
        Add tokens to the client's current token window.

        Returns:
            Tokens consumed in the current window (0 if client_id is invalid)

        Raises:
            ValueError: If tokens is not a non-negative integer
        """
        if isinstance(tokens, bool) or not isinstance(tokens, int) or tokens < 0:
            raise ValueError(f"tokens must be a non-negative integer, got {tokens!r}")

        if not is_valid_client_id(client_id):
            _log_warning("consume_tokens called with invalid client identifier, ignoring")
            return 0

        now = self.clock()
        with self._lock:
            self._maybe_cleanup(now)
            entry = self._current_entry(client_id, now)
            entry.tokens_consumed += tokens
            self._store[client_id] = entry
            return entry.tokens_consumed

    def cleanup_expired_entries(self) -> int:
        """
        Drop entries whose request and token windows have both expired.

        Pure memory hygiene: a dropped client is indistinguishable from a new one.

        Returns:
            Number of entries removed
        """
        now = self.clock()
        with self._lock:
            return self._cleanup(now)

    # --- internals (caller holds self._lock) ---

    def _current_entry(self, client_id: str, now: float) -> QuotaEntry:
        """Fetch or create the entry for client_id with both windows rolled to `now`."""
        entry = self._store.get(client_id)
        if entry is None:
            entry = self._fresh_entry(now)
            _log_debug(f"New quota entry for {client_id!r}")
        else:
            self._roll_windows(entry, now)

        self._store[client_id] = entry
        return entry

    def _fresh_entry(self, now: float) -> QuotaEntry:
        return QuotaEntry(
            request_count=0,
            request_window_reset_at=now + self.config.request_window_seconds,
            tokens_consumed=0,
            token_window_reset_at=now + self.config.token_window_seconds,
        )

    def _roll_windows(self, entry: QuotaEntry, now: float) -> None:
        # Each dimension rolls on its own boundary
        if now >= entry.request_window_reset_at:
            entry.request_count = 0
            entry.request_window_reset_at = now + self.config.request_window_seconds

        if now >= entry.token_window_reset_at:
            entry.tokens_consumed = 0
            entry.token_window_reset_at = now + self.config.token_window_seconds

    def _cleanup(self, now: float) -> int:
        expired = [client_id for client_id, entry in self._store.items() if entry.is_expired(now)]
        for client_id in expired:
            del self._store[client_id]

        self._last_cleanup = now
        log_cleanup(len(expired), len(self._store))
        return len(expired)

    def _maybe_cleanup(self, now: float) -> None:
        if now - self._last_cleanup >= self.config.cleanup_interval_seconds:
            self._cleanup(now)

"""
Check-then-consume orchestration for LLM-backed operations.

Mirrors what an API handler does around an LLM call:
check quota -> count the request -> run with a deadline -> charge tokens ->
report updated limits. Framework-agnostic; the caller maps GateOutcome to
an HTTP response and maps raised exceptions (timeouts, provider errors) to
5xx responses.
"""

import os
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Optional, TypeVar

from dotenv import load_dotenv

from vagatrack.contexts.quota.logger import _log_info, log_quota_denied
from vagatrack.contexts.quota.responses import (
    RateLimitRejection,
    build_rejection,
    rate_limit_headers,
)
from vagatrack.contexts.quota.tracker import QuotaTracker
from vagatrack.utils.timeout import call_with_timeout

load_dotenv()
DEFAULT_TIMEOUT_MS = int(os.getenv("AI_PARSING_TIMEOUT_MS", "30000"))

T = TypeVar("T")


@dataclass
class GateOutcome(Generic[T]):
    """Result of running an operation through the gate."""

    allowed: bool
    value: Optional[T] = None
    tokens_charged: int = 0
    headers: Dict[str, str] = field(default_factory=dict)
    rejection: Optional[RateLimitRejection] = None


class QuotaGate:
    """
    Runs operations on behalf of a client only while its quota allows.

    Args:
        tracker: Quota tracker shared by every request in the process
        timeout_ms: Deadline for each operation
    """

    def __init__(self, tracker: QuotaTracker, timeout_ms: int = DEFAULT_TIMEOUT_MS):
        self.tracker = tracker
        self.timeout_ms = timeout_ms

    def run(
        self,
        client_id: str,
        operation: Callable[[], T],
        token_count: Callable[[T], int],
    ) -> GateOutcome[T]:
        """
        Admit, execute and charge one operation.

        Args:
            client_id: Quota key for the caller
            operation: Zero-argument callable doing the expensive work
            token_count: Extracts tokens used from the operation's result

        Returns:
            GateOutcome with allowed=False and a rejection when over quota,
            otherwise the operation's value plus updated rate-limit headers

        Raises:
            OperationTimeoutError: If the operation misses the deadline
            Exception: Anything the operation raises propagates unchanged
        """
        check = self.tracker.check(client_id)
        if not check.allowed:
            log_quota_denied(client_id, check.remaining.requests, check.remaining.tokens)
            return GateOutcome(
                allowed=False, rejection=build_rejection(check, self.tracker.clock())
            )

        self.tracker.consume_request(client_id)

        value = call_with_timeout(
            operation,
            self.timeout_ms,
            f"Operation took longer than {self.timeout_ms}ms",
        )

        tokens = token_count(value)
        self.tracker.consume_tokens(client_id, tokens)
        _log_info(f"Charged {tokens} tokens to {client_id!r}")

        updated = self.tracker.check(client_id)
        return GateOutcome(
            allowed=True,
            value=value,
            tokens_charged=tokens,
            headers=rate_limit_headers(updated),
        )

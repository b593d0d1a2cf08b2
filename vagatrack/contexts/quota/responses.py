"""
Translate quota checks into HTTP-facing artifacts.

Framework-agnostic: returns plain dicts/dataclasses that a request handler
turns into a 429 response or attaches as advisory headers on success.
"""

import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from vagatrack.contexts.quota.logger import _log_warning
from vagatrack.contexts.quota.tracker import QuotaCheckResult
from vagatrack.utils.timestamp import iso_from_epoch

RATE_LIMITED_STATUS = 429


@dataclass
class RateLimitRejection:
    """Everything needed to emit a rate-limited response."""

    status_code: int
    retry_after: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: Dict[str, Any] = field(default_factory=dict)


def _seconds_until(reset_at: float, now: float) -> int:
    return max(0, math.ceil(reset_at - now))


def retry_after_seconds(result: QuotaCheckResult, now: float) -> int:
    """
    Seconds the client should wait before retrying.

    Uses the reset of whichever dimension is exhausted (the later one if both
    are). Falls back to the request window when neither is exhausted.
    """
    waits = []
    if result.requests_exhausted:
        waits.append(_seconds_until(result.reset_time.requests, now))
    if result.tokens_exhausted:
        waits.append(_seconds_until(result.reset_time.tokens, now))
    if not waits:
        waits.append(_seconds_until(result.reset_time.requests, now))
    return max(waits)


def rate_limit_headers(result: QuotaCheckResult) -> Dict[str, str]:
    """Advisory X-RateLimit-* headers for both dimensions (resets in epoch seconds)."""
    return {
        "X-RateLimit-Limit-Requests": str(result.limit.requests),
        "X-RateLimit-Remaining-Requests": str(result.remaining.requests),
        "X-RateLimit-Reset-Requests": str(math.floor(result.reset_time.requests)),
        "X-RateLimit-Limit-Tokens": str(result.limit.tokens),
        "X-RateLimit-Remaining-Tokens": str(result.remaining.tokens),
        "X-RateLimit-Reset-Tokens": str(math.floor(result.reset_time.tokens)),
    }


def denial_message(result: QuotaCheckResult) -> str:
    """Human-readable reason naming the exceeded limit(s)."""
    if result.requests_exhausted and result.tokens_exhausted:
        return "Request and token limits exceeded"
    if result.requests_exhausted:
        return f"Request rate limit exceeded ({result.limit.requests} requests per window)"
    if result.tokens_exhausted:
        return f"Daily token limit exceeded ({result.limit.tokens} tokens per day)"
    return "Rate limit exceeded"


def build_rejection(result: QuotaCheckResult, now: float) -> RateLimitRejection:
    """
    Build the 429 response for a denied check.

    Args:
        result: A check result with allowed=False
        now: Current epoch seconds (used for Retry-After)
    """
    retry_after = retry_after_seconds(result, now)
    headers = {"Retry-After": str(retry_after), **rate_limit_headers(result)}

    body = {
        "success": False,
        "error": denial_message(result),
        "limits": {
            "requests": {
                "remaining": result.remaining.requests,
                "limit": result.limit.requests,
                "resetAt": iso_from_epoch(result.reset_time.requests),
            },
            "tokens": {
                "remaining": result.remaining.tokens,
                "limit": result.limit.tokens,
                "resetAt": iso_from_epoch(result.reset_time.tokens),
            },
        },
        "retryAfter": retry_after,
    }

    return RateLimitRejection(
        status_code=RATE_LIMITED_STATUS, retry_after=retry_after, headers=headers, body=body
    )


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def resolve_client_identifier(
    headers: Mapping[str, str], remote_addr: Optional[str] = None
) -> str:
    """
    Derive the quota key for a request.

    Order: the server-observed address, the leftmost non-empty X-Forwarded-For
    entry, X-Real-IP. Forwarding headers are only meaningful behind a trusted
    proxy. When nothing identifies the caller a unique per-request id is
    returned so unrelated clients never share a bucket.
    """
    if remote_addr and remote_addr.strip():
        return remote_addr.strip()

    real_ip = (_header(headers, "x-real-ip") or "").strip()

    forwarded_for = _header(headers, "x-forwarded-for")
    if forwarded_for:
        for candidate in forwarded_for.split(","):
            if candidate.strip():
                return candidate.strip()

    if real_ip:
        return real_ip

    _log_warning("Could not determine client address, using per-request identifier")
    return f"req-{uuid.uuid4()}"

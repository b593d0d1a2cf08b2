"""
Quota Context

Responsibilities:
- Tracks per-client request and token budgets for LLM-backed endpoints
- Turns denied checks into rate-limit responses and advisory headers
- Orchestrates check -> consume -> call -> charge around expensive operations

Owns: Admission control state (one tracker per process)
Never: Derives identity beyond request metadata or persists quotas
"""

from vagatrack.contexts.quota.config import QuotaConfig, load_quota_config
from vagatrack.contexts.quota.gate import GateOutcome, QuotaGate
from vagatrack.contexts.quota.responses import (
    build_rejection,
    rate_limit_headers,
    resolve_client_identifier,
    retry_after_seconds,
)
from vagatrack.contexts.quota.tracker import QuotaCheckResult, QuotaEntry, QuotaTracker

__all__ = [
    "QuotaConfig",
    "load_quota_config",
    "GateOutcome",
    "QuotaGate",
    "build_rejection",
    "rate_limit_headers",
    "resolve_client_identifier",
    "retry_after_seconds",
    "QuotaCheckResult",
    "QuotaEntry",
    "QuotaTracker",
]

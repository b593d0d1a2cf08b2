"""
Quota context logger.

Provides logging interface for the quota context with automatic [quota] prefix.
All quota modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path

from loguru import logger

from vagatrack.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[quota]"


def setup_quota_logger(log_dir: Path) -> Path:
    """Setup logger for the quota context. Returns the log file path."""
    return _setup_logger(context_name="quota", log_dir=log_dir)


def _log_info(message: str) -> None:
    """Log info message with [quota] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [quota] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [quota] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_quota_denied(client_id: str, remaining_requests: int, remaining_tokens: int) -> None:
    """Log a denied admission check."""
    _log_warning(
        f"Denied {client_id!r}: {remaining_requests} requests, "
        f"{remaining_tokens} tokens remaining"
    )


def log_cleanup(removed: int, retained: int) -> None:
    """Log the outcome of an expired-entry sweep."""
    if removed:
        _log_debug(f"Cleanup removed {removed} expired entries ({retained} retained)")

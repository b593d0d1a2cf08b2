"""
Intake context logger.

Provides logging interface for the intake context with automatic [intake] prefix.
All intake modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path
from typing import Dict, Optional

from loguru import logger

from vagatrack.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[intake]"


def setup_intake_logger(log_dir: Path, source: Optional[str] = None) -> Path:
    """
    Setup logger for the intake context.

    Args:
        log_dir: Directory for this intake session
        source: Input being processed, recorded in the provenance header

    Returns:
        Path to log file
    """
    extra = {"Source": source} if source else None
    return _setup_logger(context_name="intake", log_dir=log_dir, extra_provenance=extra)


# Wrapper functions with automatic [intake] prefix


def _log_info(message: str) -> None:
    """Log info message with [intake] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [intake] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [intake] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [intake] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_fields_extracted(fields: Dict[str, object], source: str = "markdown") -> None:
    """Log which vaga fields an extraction produced."""
    if fields:
        _log_debug(f"Extracted {len(fields)} fields from {source}: {', '.join(sorted(fields))}")
    else:
        _log_debug(f"No fields recognized in {source}")


def log_parse_result(model: str, duration_ms: int, total_tokens: int) -> None:
    """Log a completed AI parse."""
    _log_success(f"Parsed job with {model} in {duration_ms}ms ({total_tokens} tokens)")

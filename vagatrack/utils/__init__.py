"""
Shared utilities for vagatrack.

Common functionality used across contexts:
- Logging setup
- Date formatting
- LLM provider access
- Deadlines for slow calls
"""

from vagatrack.utils.timeout import OperationTimeoutError, call_with_timeout, with_timeout
from vagatrack.utils.timestamp import data_inscricao, format_date_dd_mm_yyyy, iso_from_epoch

__all__ = [
    "OperationTimeoutError",
    "call_with_timeout",
    "with_timeout",
    "data_inscricao",
    "format_date_dd_mm_yyyy",
    "iso_from_epoch",
]

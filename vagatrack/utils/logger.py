"""
Logger setup shared by the intake and quota contexts.

Each CLI run gets its own directory under LOGS_PATH holding one
<context>.log file (DEBUG and up) while INFO and up is echoed to the
console. Context modules wrap this in contexts/{context}/logger.py and add
their own message prefix.
"""

import os
import sys
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv
from loguru import logger

from vagatrack import __version__
from vagatrack.utils.timestamp import now

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))
CONSOLE_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {message}"
CONSOLE_FORMAT = "{time:HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"

LEVEL_COLORS = {
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}


def session_log_dir(run_name: str, base_dir: Optional[Path] = None) -> Path:
    """
    Directory for one CLI run, e.g. outs/logs/parse_20251114_123456.

    Args:
        run_name: Short name of the command ("parse", "quota")
        base_dir: Parent directory (defaults to LOGS_PATH)
    """
    return (base_dir or LOGS_PATH) / f"{run_name}_{now()}"


def setup_logger(
    context_name: str,
    log_dir: Path,
    extra_provenance: Optional[Dict[str, object]] = None,
    console_level: str = CONSOLE_LEVEL,
) -> Path:
    """
    Route loguru output to <log_dir>/<context_name>.log and the console.

    Replaces any previously configured sinks, so calling it twice in one
    process leaves only the latest run's handlers.

    Args:
        context_name: Context identifier ("intake", "quota")
        log_dir: Directory for this run (created if missing)
        extra_provenance: Key-value pairs added to the provenance header
        console_level: Minimum level echoed to stdout (LOG_LEVEL env var)

    Returns:
        Path to the log file
    """
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / f"{context_name}.log"

    logger.remove()
    for level_name, color in LEVEL_COLORS.items():
        logger.level(level_name, color=color)

    logger.add(log_file, format=FILE_FORMAT, level="DEBUG", encoding="utf-8")
    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=console_level, colorize=True)

    log_provenance(context_name, extra_provenance)
    return log_file


def log_provenance(context_name: str, extra_context: Optional[Dict[str, object]] = None) -> None:
    """Write a header describing how this run was started."""
    logger.info("=" * 80)
    logger.info(f"vagatrack {__version__} [{context_name}]")
    logger.info(f"Command: {' '.join(sys.argv)}")
    logger.info(f"Working directory: {Path.cwd()}")
    logger.info(f"Python: {sys.version.split()[0]}")

    for key, value in (extra_context or {}).items():
        logger.info(f"{key}: {value}")

    logger.info("=" * 80)

"""
Markdown normalizer for the Intake context.

Uploaded vaga notes come from every editor and OS there is. Normalize line
endings and blank-line runs BEFORE field extraction so the patterns only
ever see `\\n`-separated lines.
"""

import re
from pathlib import Path
from typing import Union

MARKDOWN_SUFFIX = ".md"

# Three or more newlines, where the blank lines may hold spaces/tabs
_BLANK_LINE_RUN = re.compile(r"\n(?:[ \t]*\n){2,}")


def normalize_line_endings(text: str) -> str:
    """Convert CRLF and lone CR to LF."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def collapse_blank_lines(text: str) -> str:
    """Collapse runs of blank lines into exactly one blank line."""
    return _BLANK_LINE_RUN.sub("\n\n", text)


def sanitize_markdown(text: str) -> str:
    """
    Normalize markdown for parsing.

    Steps:
    1. CRLF / CR line endings become LF
    2. Runs of 3+ newlines collapse to one blank line
    3. Leading and trailing whitespace is trimmed

    Idempotent: sanitizing sanitized text changes nothing.

    Args:
        text: Raw markdown

    Returns:
        Sanitized markdown
    """
    text = normalize_line_endings(text)
    text = collapse_blank_lines(text)
    return text.strip()


def is_markdown_file(filename: Union[str, Path]) -> bool:
    """
    Check whether a filename denotes a markdown file.

    Only the `.md` suffix counts (case-insensitive); `.markdown`, `.txt` and
    suffix-less names do not.
    """
    return str(filename).lower().endswith(MARKDOWN_SUFFIX)

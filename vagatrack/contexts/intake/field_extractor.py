"""
Heuristic field extraction from vaga markdown notes.

Pulls the structured fields of a job application out of loosely formatted
markdown (two-column tables, `**Label**: value` lines, headings, free-text
blocks) with pattern matching only. This module has no LLM dependencies.

Every field is described by a FieldRule. Candidate raw values are tried in
priority order (table cell first, then each pattern's matches) and the first
one that survives the field's normalizer wins. A field that never yields a
valid value is simply absent from the result.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, TypeVar, Union

from vagatrack.contexts.intake.logger import _log_debug, log_fields_extracted
from vagatrack.contexts.intake.normalizer import (
    is_markdown_file,
    normalize_line_endings,
    sanitize_markdown,
)
from vagatrack.contexts.intake.patterns import (
    ADVANCED_INDICATORS,
    CARGO_LABELS,
    EMPRESA_LABELS,
    ETAPA_LABELS,
    FIT_LABELS,
    HIRED_INDICATORS,
    HYBRID_INDICATORS,
    IN_PERSON_INDICATORS,
    LEADING_INTEGER,
    LOCAL_LABELS,
    MODALIDADE_LABELS,
    PENDING_INDICATORS,
    REJECTED_INDICATORS,
    REMOTE_INDICATORS,
    REQUISITOS_LABELS,
    STATUS_LABELS,
    TABLE_FIELD_ALIASES,
    TABLE_HEADER_FIELD,
    TABLE_HEADER_VALUE_HINT,
    NotesPatterns,
    TablePatterns,
    bare_label_block,
    heading_block,
    labeled_line,
)
from vagatrack.contexts.intake.vaga_data_structure import (
    FIT_RANGE,
    REQUISITOS_RANGE,
    VagaStatus,
    WorkMode,
)

V = TypeVar("V")

# Uploads larger than this are rejected before reading
MAX_MARKDOWN_BYTES = 2 * 1024 * 1024


# =============================================================================
# COMBINATOR
# =============================================================================


def first_valid(
    candidates: Iterable[Optional[str]], normalize: Callable[[str], Optional[V]]
) -> Optional[V]:
    """
    Return the first candidate that normalizes to a value.

    Candidates are consumed lazily, so later (more expensive) pattern searches
    only run when earlier ones failed. None candidates are skipped.

    Args:
        candidates: Raw strings in priority order
        normalize: Maps a raw string to a value, or None to reject it

    Returns:
        First accepted value, or None when every candidate is rejected
    """
    for raw in candidates:
        if raw is None:
            continue
        value = normalize(raw)
        if value is not None:
            return value
    return None


# =============================================================================
# NORMALIZERS (raw string -> value or None)
# =============================================================================


def clean_value(raw: str) -> Optional[str]:
    """Trim whitespace, surrounding pipes and bold markers; empty becomes None."""
    value = raw.strip().strip("|").strip().strip("*").strip()
    return value or None


def clean_block(raw: str) -> Optional[str]:
    """Trim a free-text block; empty becomes None."""
    value = raw.strip()
    return value or None


def _matches_any(value: str, indicators: Tuple[str, ...]) -> bool:
    return any(indicator in value for indicator in indicators)


def classify_work_mode(raw: str) -> Optional[WorkMode]:
    """
    Classify a free-text work mode.

    Precedence: hybrid > remote > in-person, so "Presencial | Híbrido |
    Remoto" (a template nobody edited) reads as Híbrido.
    """
    value = raw.lower().replace("\\", "")
    if _matches_any(value, HYBRID_INDICATORS):
        return WorkMode.HIBRIDO
    if _matches_any(value, REMOTE_INDICATORS):
        return WorkMode.REMOTO
    if _matches_any(value, IN_PERSON_INDICATORS):
        return WorkMode.PRESENCIAL
    return None


def classify_status(raw: str) -> Optional[VagaStatus]:
    """Classify a free-text status. Precedence: hired > advanced > rejected > pending."""
    value = raw.lower().replace("\\", "")
    if _matches_any(value, HIRED_INDICATORS):
        return VagaStatus.CONTRATADO
    if _matches_any(value, ADVANCED_INDICATORS):
        return VagaStatus.AVANCADO
    if _matches_any(value, REJECTED_INDICATORS):
        return VagaStatus.MELOU
    if _matches_any(value, PENDING_INDICATORS):
        return VagaStatus.PENDENTE
    return None


def parse_bounded_int(raw: str, low: int, high: int) -> Optional[int]:
    """
    Parse the leading integer of raw if it lies in [low, high].

    "85%" and "8/10" give 85 and 8. Decimals ("8.5") and out-of-range
    values give None.
    """
    match = LEADING_INTEGER.match(raw)
    if not match:
        return None
    value = int(match.group(1))
    if low <= value <= high:
        return value
    return None


def _bounded(value_range: Tuple[int, int]) -> Callable[[str], Optional[int]]:
    low, high = value_range
    return lambda raw: parse_bounded_int(raw, low, high)


def _classified(classify: Callable[[str], Optional[V]]) -> Callable[[str], Optional[V]]:
    def normalize(raw: str) -> Optional[V]:
        value = clean_value(raw)
        return classify(value) if value else None

    return normalize


# =============================================================================
# FIELD RULES
# =============================================================================


@dataclass(frozen=True)
class FieldRule:
    """
    How to find one vaga field.

    Attributes:
        name: Output key
        patterns: Regexes tried in order; group 1 is the raw value
        normalize: Raw string -> value, or None to try the next candidate
        table_key: Key in the extracted table (defaults to name)
    """

    name: str
    patterns: Tuple[re.Pattern, ...]
    normalize: Callable[[str], Optional[Any]]
    table_key: Optional[str] = None

    def candidates(self, text: str, table: Dict[str, str]) -> Iterator[str]:
        """Raw values in priority order: table cell, then each pattern's matches."""
        key = self.table_key or self.name
        if key in table:
            yield table[key]
        for pattern in self.patterns:
            for match in pattern.finditer(text):
                yield match.group(1)

    def extract(self, text: str, table: Dict[str, str]) -> Optional[Any]:
        return first_valid(self.candidates(text, table), self.normalize)


FIELD_RULES: Tuple[FieldRule, ...] = (
    FieldRule(
        name="empresa",
        patterns=(
            labeled_line(EMPRESA_LABELS),
            heading_block(EMPRESA_LABELS),
            bare_label_block(EMPRESA_LABELS),
        ),
        normalize=clean_value,
    ),
    FieldRule(
        name="cargo",
        patterns=(
            labeled_line(CARGO_LABELS),
            heading_block(CARGO_LABELS),
            bare_label_block(CARGO_LABELS),
        ),
        normalize=clean_value,
    ),
    FieldRule(
        name="local",
        patterns=(labeled_line(LOCAL_LABELS), heading_block(LOCAL_LABELS)),
        normalize=clean_value,
    ),
    FieldRule(
        name="modalidade",
        patterns=(labeled_line(MODALIDADE_LABELS),),
        normalize=_classified(classify_work_mode),
    ),
    FieldRule(
        name="requisitos",
        patterns=(labeled_line(REQUISITOS_LABELS),),
        normalize=_bounded(REQUISITOS_RANGE),
    ),
    FieldRule(
        name="fit",
        patterns=(labeled_line(FIT_LABELS),),
        normalize=_bounded(FIT_RANGE),
    ),
    FieldRule(
        name="etapa",
        patterns=(labeled_line(ETAPA_LABELS),),
        normalize=clean_value,
    ),
    FieldRule(
        name="status",
        patterns=(labeled_line(STATUS_LABELS),),
        normalize=_classified(classify_status),
    ),
    FieldRule(
        name="observacoes",
        patterns=(
            NotesPatterns.HEADER_BLOCK,
            NotesPatterns.HEADING_BLOCK,
            NotesPatterns.INLINE,
        ),
        normalize=clean_block,
    ),
)


# =============================================================================
# TABLE EXTRACTION
# =============================================================================


def normalize_table_field_name(name: str) -> str:
    """Lowercase, drop bold markers and punctuation, remove whitespace."""
    name = name.lower().replace("**", "")
    name = TablePatterns.PUNCTUATION.sub("", name)
    return "".join(name.split())


def _split_row(line: str) -> List[str]:
    """Split a `| a | b |` row into non-empty cells, unescaping `\\|`."""
    inner = line[1:-1]
    cells = [cell.strip().replace("\\|", "|") for cell in TablePatterns.CELL_SPLIT.split(inner)]
    return [cell for cell in cells if cell]


def extract_table_fields(text: str) -> Dict[str, str]:
    """
    Extract `| Campo | Valor |` rows whose field name is a known alias.

    Rows that are separators, the `Campo | Detalhes` header, or do not have
    exactly two non-empty cells are skipped. The first row for a field wins.

    Args:
        text: Markdown document

    Returns:
        Dict of vaga field name to raw cell value
    """
    fields: Dict[str, str] = {}

    for line in text.split("\n"):
        stripped = line.strip()
        if len(stripped) < 2 or not (stripped.startswith("|") and stripped.endswith("|")):
            continue
        if TablePatterns.SEPARATOR_ROW.match(stripped):
            continue

        cells = _split_row(stripped)
        if len(cells) != 2:
            continue

        field_name = normalize_table_field_name(cells[0])
        value = cells[1].replace("**", "").strip()

        if field_name == TABLE_HEADER_FIELD and TABLE_HEADER_VALUE_HINT in value.lower():
            continue

        mapped = TABLE_FIELD_ALIASES.get(field_name)
        if mapped and value and mapped not in fields:
            fields[mapped] = value

    return fields


# =============================================================================
# PUBLIC API
# =============================================================================


def parse_vaga_markdown(text: str) -> Dict[str, object]:
    """
    Extract vaga fields from a markdown document.

    Never raises on any string input; an unrecognizable document gives {}.

    Args:
        text: Markdown (ideally already passed through sanitize_markdown).
            CRLF and lone CR line endings are accepted.

    Returns:
        Dict with a subset of VAGA_FIELDS as keys. Missing fields are absent,
        never empty strings. modalidade/status are enum members, requisitos
        and fit are ints.
    """
    text = normalize_line_endings(text)
    table = extract_table_fields(text)

    result: Dict[str, object] = {}
    for rule in FIELD_RULES:
        value = rule.extract(text, table)
        if value is not None:
            result[rule.name] = value

    log_fields_extracted(result)
    return result


def parse_vaga_file(path: Union[str, Path]) -> Dict[str, object]:
    """
    Read, sanitize and parse a markdown file.

    Raises:
        ValueError: If the file is not a `.md` file or exceeds MAX_MARKDOWN_BYTES
        OSError: If the file cannot be read
    """
    path = Path(path)
    if not is_markdown_file(path.name):
        raise ValueError(f"Not a markdown file (.md required): {path.name}")

    size = path.stat().st_size
    if size > MAX_MARKDOWN_BYTES:
        raise ValueError(f"Markdown file too large: {size} bytes (max {MAX_MARKDOWN_BYTES})")

    text = path.read_text(encoding="utf-8")
    _log_debug(f"Parsing {path.name} ({size} bytes)")
    return parse_vaga_markdown(sanitize_markdown(text))

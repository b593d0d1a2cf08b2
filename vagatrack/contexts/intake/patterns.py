"""
Reusable patterns and constants for vaga markdown parsing.

Label vocabularies (Portuguese first, English synonyms after), regex builders
for the layouts people actually write notes in, table aliases and the
keyword indicators used to classify work mode and status.

Pattern classes follow the same convention throughout:
- Dataclasses with frozen=True for immutability
- Class-level constants for patterns
- Helper functions that use these patterns
"""

import re
from dataclasses import dataclass
from typing import Dict, Tuple

# Horizontal whitespace (never crosses a line)
_HSPACE = r"[^\S\r\n]*"
_HSPACE_1 = r"[^\S\r\n]+"

# Optional bold/italic markers around a label
_EMPH = r"[*_]{0,2}"

# Optional list bullet or heading marker before an inline label
_LINE_PREFIX = rf"(?:(?:[-+*]|#{{1,6}}){_HSPACE_1})?"

# A line opening with `label:` (one to three words, optional bullet and emphasis).
# URLs are not labels.
_LABEL_SHAPE = (
    rf"{_LINE_PREFIX}{_EMPH}[^\W\d_]+(?:{_HSPACE_1}[^\W\d_]+){{0,2}}{_EMPH}{_HSPACE}:(?!//)"
)

# Next non-blank line, rejected when it is a heading, a table row or a `label: value` line
_NEXT_LINE_VALUE = rf"\n(?:{_HSPACE}\n)*{_HSPACE}(?![#|])(?!{_LABEL_SHAPE})([^\n]+)$"

_FLAGS = re.IGNORECASE | re.MULTILINE

# Observation body: lines up to one starting with `**<word>` or `#`
_NOTES_BODY = rf"((?:(?!{_HSPACE}(?:\*\*\w|#))[^\n]*(?:\n|\Z))*)"


# =============================================================================
# LABEL VOCABULARIES (regex alternations, case-insensitive)
# =============================================================================

EMPRESA_LABELS = r"empresa|company"
CARGO_LABELS = r"cargo|vaga|role|position"
LOCAL_LABELS = r"local|localiza[çc][ãa]o|cidade|location"
MODALIDADE_LABELS = r"modalidade|work[^\S\r\n]*mode"
REQUISITOS_LABELS = r"requisitos|requisito|score|nota"
FIT_LABELS = r"fit|adequa[çc][ãa]o|combina[çc][ãa]o"
ETAPA_LABELS = r"etapa|fase|est[áa]gio[^\S\r\n]+do[^\S\r\n]+processo|stage"
STATUS_LABELS = r"status|situa[çc][ãa]o"

# Block headers accept the singular "Nota"; inline labels do not, since
# "Nota: 80" is a requirements score
OBSERVACOES_BLOCK_LABELS = r"observa[çc][õo]es|observa[çc][ãa]o|notas?|notes"
OBSERVACOES_INLINE_LABELS = r"observa[çc][õo]es|observa[çc][ãa]o|notas|notes"


# =============================================================================
# PATTERN BUILDERS
# =============================================================================


def labeled_line(labels: str) -> re.Pattern:
    """
    Inline `label: value` on a single line.

    Accepts `**Label**: value`, `**Label:** value`, `Label: value`,
    `- Label: value` and `## Label: value`. The colon is required and the
    value must be on the same line.
    """
    return re.compile(
        rf"^{_HSPACE}{_LINE_PREFIX}{_EMPH}(?:{labels}){_EMPH}{_HSPACE}:{_EMPH}{_HSPACE}(.+)$",
        _FLAGS,
    )


def heading_block(labels: str) -> re.Pattern:
    """Markdown heading (`# Label`) whose value is the next non-blank line."""
    return re.compile(
        rf"^#{{1,6}}{_HSPACE}{_EMPH}(?:{labels}){_EMPH}{_HSPACE}:?{_HSPACE}$" + _NEXT_LINE_VALUE,
        _FLAGS,
    )


def bare_label_block(labels: str) -> re.Pattern:
    """A label alone on its line (no markup, no colon), value on the next non-blank line."""
    return re.compile(rf"^{_HSPACE}(?:{labels}){_HSPACE}$" + _NEXT_LINE_VALUE, _FLAGS)


@dataclass(frozen=True)
class NotesPatterns:
    """
    Patterns for the free-text observations block.

    The body runs line by line until a line starting with `**<word>` or `#`,
    or the end of input.
    """

    # **Observações**: / Notas / _Notes:_ followed by a newline
    HEADER_BLOCK: re.Pattern = re.compile(
        rf"^{_HSPACE}{_EMPH}(?:{OBSERVACOES_BLOCK_LABELS}){_EMPH}{_HSPACE}:?{_EMPH}{_HSPACE}\n"
        + _NOTES_BODY,
        _FLAGS,
    )

    # # Observações
    HEADING_BLOCK: re.Pattern = re.compile(
        rf"^#{{1,6}}{_HSPACE}{_EMPH}(?:{OBSERVACOES_BLOCK_LABELS}){_EMPH}{_HSPACE}:?{_HSPACE}\n"
        + _NOTES_BODY,
        _FLAGS,
    )

    INLINE: re.Pattern = labeled_line(OBSERVACOES_INLINE_LABELS)


# Whole leading integer, rejected when it continues as a decimal (8.5, 8,5)
LEADING_INTEGER = re.compile(r"^\s*([+-]?\d+)(?![.,]?\d)")


# =============================================================================
# TABLE PATTERNS
# =============================================================================


@dataclass(frozen=True)
class TablePatterns:
    """Patterns for two-column `| Campo | Valor |` tables."""

    # Cell boundary: a pipe not escaped with a backslash
    CELL_SPLIT: re.Pattern = re.compile(r"(?<!\\)\|")

    # Alignment row, e.g. |-------|:------:|
    SEPARATOR_ROW: re.Pattern = re.compile(r"^\|?[\s:|-]*-{3,}[\s:|-]*\|?$")

    # Anything that is not a word character or whitespace
    PUNCTUATION: re.Pattern = re.compile(r"[^\w\s]")


# Normalized table field name -> vaga field
TABLE_FIELD_ALIASES: Dict[str, str] = {
    "empresa": "empresa",
    "company": "empresa",
    "cargo": "cargo",
    "vaga": "cargo",
    "role": "cargo",
    "position": "cargo",
    "local": "local",
    "localização": "local",
    "localizacao": "local",
    "cidade": "local",
    "cidadeestado": "local",
    "location": "local",
    "modalidade": "modalidade",
    "workmode": "modalidade",
    "requisitos": "requisitos",
    "requisito": "requisitos",
    "score": "requisitos",
    "fit": "fit",
    "adequação": "fit",
    "adequacao": "fit",
    "combinação": "fit",
    "combinacao": "fit",
    "etapa": "etapa",
    "fase": "etapa",
    "stage": "etapa",
    "status": "status",
    "situação": "status",
    "situacao": "status",
    "observações": "observacoes",
    "observacoes": "observacoes",
    "observação": "observacoes",
    "observacao": "observacoes",
    "notas": "observacoes",
    "nota": "observacoes",
    "notes": "observacoes",
}

# Header row of the "| Campo | Detalhes |" template table
TABLE_HEADER_FIELD = "campo"
TABLE_HEADER_VALUE_HINT = "detalhe"


# =============================================================================
# CLASSIFICATION INDICATORS (substring match on lowercased values)
# =============================================================================

HYBRID_INDICATORS: Tuple[str, ...] = ("híbrido", "hibrido", "hybrid")
REMOTE_INDICATORS: Tuple[str, ...] = ("remoto", "remote")
IN_PERSON_INDICATORS: Tuple[str, ...] = ("presencial", "on-site", "onsite", "in-person")

HIRED_INDICATORS: Tuple[str, ...] = ("contrat", "hired")
ADVANCED_INDICATORS: Tuple[str, ...] = ("avan", "advanc", "progress", "process")
REJECTED_INDICATORS: Tuple[str, ...] = ("melou", "reprov", "recus", "rejected", "declined", "failed")
PENDING_INDICATORS: Tuple[str, ...] = (
    "pendent",
    "aguard",
    "inscri",
    "pending",
    "waiting",
    "applied",
)

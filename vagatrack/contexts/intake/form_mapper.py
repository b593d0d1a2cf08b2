"""
Map parsed job data onto the add-vaga form and into a saveable record.

Two sources feed the form: the heuristic markdown extractor (a partial dict)
and the AI parser (JobDetails). Only fields the source actually produced
overwrite what the user already typed.
"""

import math
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Mapping, Optional, Union

from vagatrack.contexts.intake.vaga_data_structure import (
    FIT_RANGE,
    REQUISITOS_RANGE,
    JobDetails,
    VagaStatus,
    WorkMode,
)
from vagatrack.utils.timestamp import data_inscricao

# Fields stored as text in the form even when the parser returns numbers
_NUMERIC_FORM_FIELDS = ("requisitos", "fit")

STAR_SCALE = 5

# Upper bound of each rating as the markdown extractor reports it
EXTRACTED_RATING_SCALES: Dict[str, int] = {
    "requisitos": REQUISITOS_RANGE[1],
    "fit": FIT_RANGE[1],
}


@dataclass
class VagaFormData:
    """
    State of the add-vaga form. Every free-text field is a string, never None.

    rating_scales maps a rating field to the upper bound of the scale its
    current value was parsed on. Ratings without an entry are treated as typed
    by the user and their scale is inferred when saving.
    """

    empresa: str = ""
    cargo: str = ""
    local: str = ""
    modalidade: WorkMode = WorkMode.PRESENCIAL
    requisitos: str = ""
    fit: str = ""
    etapa: str = ""
    status: VagaStatus = VagaStatus.PENDENTE
    observacoes: str = ""
    arquivo_analise_url: str = ""
    arquivo_cv_url: str = ""
    analise_markdown: str = ""
    rating_scales: Dict[str, int] = field(default_factory=dict)


def _format_number(value: Union[int, float]) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def merge_parsed_fields(
    form: VagaFormData,
    parsed: Mapping[str, Any],
    scales: Optional[Mapping[str, int]] = None,
) -> VagaFormData:
    """
    Overlay a partial parse result onto the form.

    Keys missing from parsed (or mapped to None/"") leave the form untouched.
    Numeric scores are stored as strings; categorical values may be enum
    members or their display strings.

    Args:
        form: Current form state
        parsed: Partial field mapping from a parser
        scales: Upper bound of the scale each rating in parsed uses
            (EXTRACTED_RATING_SCALES for the markdown extractor). Merged
            ratings not listed here have their scale inferred when saving.

    Returns:
        A new VagaFormData; the input form is not modified
    """
    updates: Dict[str, Any] = {}
    rating_scales = dict(form.rating_scales)

    for key, value in parsed.items():
        if value is None or value == "" or key == "rating_scales" or not hasattr(form, key):
            continue
        if key == "modalidade":
            value = value if isinstance(value, WorkMode) else WorkMode(value)
        elif key == "status":
            value = value if isinstance(value, VagaStatus) else VagaStatus(value)
        elif key in _NUMERIC_FORM_FIELDS:
            if not isinstance(value, str):
                value = _format_number(value)
            if scales and key in scales:
                rating_scales[key] = scales[key]
            else:
                rating_scales.pop(key, None)
        updates[key] = value

    return replace(form, rating_scales=rating_scales, **updates)


def build_observacoes(details: JobDetails) -> str:
    """
    Render the list fields of JobDetails as bold-headed bullet sections.

    Sections with no items are omitted; sections are separated by a blank line.
    """
    sections = []
    for title, items in (
        ("Requisitos Obrigatórios", details.requisitos_obrigatorios),
        ("Requisitos Desejáveis", details.requisitos_desejaveis),
        ("Responsabilidades", details.responsabilidades),
        ("Benefícios", details.beneficios),
    ):
        if items:
            bullets = "\n".join(f"- {item}" for item in items)
            sections.append(f"**{title}:**\n{bullets}")

    return "\n\n".join(sections)


def map_job_details_to_form(
    details: JobDetails, analysis_markdown: Optional[str] = None
) -> Dict[str, Any]:
    """
    Convert AI-parsed JobDetails into form field updates.

    Returns a partial mapping suitable for merge_parsed_fields().
    """
    fields: Dict[str, Any] = {
        "empresa": details.empresa,
        "cargo": details.cargo,
        "local": details.local,
        "modalidade": details.modalidade,
        "requisitos": (
            _format_number(details.requisitos_score) if details.requisitos_score is not None else ""
        ),
        "fit": _format_number(details.fit) if details.fit is not None else "",
        "etapa": details.etapa or "",
        "status": details.status or VagaStatus.PENDENTE,
        "observacoes": build_observacoes(details),
    }
    if analysis_markdown:
        fields["analise_markdown"] = analysis_markdown
    return fields


def normalize_rating_for_save(
    value: Union[str, int, float, None], scale: Optional[int] = None
) -> Optional[float]:
    """
    Rescale a rating to 0-5 stars in 0.5 steps.

    With a known scale the value is mapped linearly (fit 4 of 10 -> 2.0).
    Without one the scale is inferred from magnitude: up to 5 is already
    stars, up to 10 is halved, up to 100 is a percentage, so a bare 4 always
    reads as 4 stars. Halves round up (85% -> 4.5).

    Args:
        value: Rating as typed or parsed
        scale: Upper bound of the scale value is on, if known

    Returns:
        Star rating, or None for empty, non-numeric, negative or out-of-scale
        input (above 100 when the scale is inferred)
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            return None
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        number = float(value)

    if math.isnan(number) or number < 0 or number > (scale or 100):
        return None

    if scale:
        stars = number * STAR_SCALE / scale
    elif number <= STAR_SCALE:
        stars = number
    elif number <= 10:
        stars = number / 2
    else:
        stars = number / 20

    half_steps = (Decimal(str(stars)) * 2).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return float(half_steps) / 2


def build_vaga_record(form: VagaFormData, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Turn the form into the record persisted for a new vaga.

    Ratings are rescaled to stars using the scale they were parsed on,
    optional text fields become None when blank and data_inscricao is
    stamped with today's date.
    """
    record = asdict(form)
    record.pop("analise_markdown")
    scales = record.pop("rating_scales")
    record["modalidade"] = form.modalidade.value
    record["status"] = form.status.value
    for key in _NUMERIC_FORM_FIELDS:
        record[key] = normalize_rating_for_save(record[key], scales.get(key))
    for key in ("etapa", "observacoes", "arquivo_analise_url", "arquivo_cv_url"):
        record[key] = record[key] or None
    record["data_inscricao"] = data_inscricao(now)
    return record

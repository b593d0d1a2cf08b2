"""
Data structures for job applications ("vagas").

The closed category sets (work mode, status, level) shared by the heuristic
extractor, the AI parser and the form mapper live here, together with
JobDetails, the structured record an LLM returns for a job posting.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

# Keys a heuristic extraction may produce (all optional)
VAGA_FIELDS = [
    "empresa",
    "cargo",
    "local",
    "modalidade",
    "requisitos",
    "fit",
    "etapa",
    "status",
    "observacoes",
]

# Score bounds used by the heuristic extractor (native, not star-rescaled)
REQUISITOS_RANGE = (0, 100)
FIT_RANGE = (0, 10)

# Star ratings accepted from the LLM
STAR_RANGE = (0, 5)

MAX_SALARY_LENGTH = 100


class WorkMode(Enum):
    """Where the work happens."""

    PRESENCIAL = "Presencial"
    HIBRIDO = "Híbrido"
    REMOTO = "Remoto"


class VagaStatus(Enum):
    """Progress of an application."""

    PENDENTE = "Pendente"
    AVANCADO = "Avançado"
    MELOU = "Melou"
    CONTRATADO = "Contratado"


class JobLevel(Enum):
    """Seniority of the position."""

    ESTAGIO = "Estágio"
    JUNIOR = "Júnior"
    PLENO = "Pleno"
    SENIOR = "Sênior"


LANGUAGES = ("pt", "en")


class JobDetailsValidationError(ValueError):
    """
    Raised when structured job data violates the JobDetails schema.

    Attributes:
        field_name: Offending field
        value: The rejected value
    """

    def __init__(self, field_name: str, value: Any, reason: str):
        self.field_name = field_name
        self.value = value
        super().__init__(f"Invalid {field_name}={value!r}: {reason}")


def _enum_or_default(enum_cls, field_name: str, value: Any, default):
    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = [member.value for member in enum_cls]
        raise JobDetailsValidationError(field_name, value, f"expected one of {allowed}") from None


def _string_list(field_name: str, value: Any) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise JobDetailsValidationError(field_name, value, "expected a list of strings")
    items = []
    for item in value:
        if not isinstance(item, str):
            raise JobDetailsValidationError(field_name, item, "list items must be strings")
        if item.strip():
            items.append(item.strip())
    return items


def _optional_score(field_name: str, value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise JobDetailsValidationError(field_name, value, "expected a number")
    low, high = STAR_RANGE
    if not low <= value <= high:
        raise JobDetailsValidationError(field_name, value, f"expected {low}-{high}")
    return float(value)


def _optional_text(field_name: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise JobDetailsValidationError(field_name, value, "expected a string")
    return value


@dataclass
class JobDetails:
    """
    Structured data for one job posting.

    Produced by the AI parser. LLMs are allowed to answer null for anything;
    from_dict() turns nulls into safe defaults so downstream code never
    branches on None for the core fields.
    """

    empresa: str = ""
    cargo: str = ""
    local: str = ""
    modalidade: WorkMode = WorkMode.PRESENCIAL
    tipo_vaga: JobLevel = JobLevel.ESTAGIO
    requisitos_obrigatorios: List[str] = field(default_factory=list)
    requisitos_desejaveis: List[str] = field(default_factory=list)
    responsabilidades: List[str] = field(default_factory=list)
    beneficios: List[str] = field(default_factory=list)
    salario: Optional[str] = None
    idioma_vaga: str = "pt"
    requisitos_score: Optional[float] = None
    fit: Optional[float] = None
    etapa: Optional[str] = None
    status: Optional[VagaStatus] = None
    observacoes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JobDetails":
        """
        Validate and coerce a raw dict (e.g., parsed LLM JSON).

        Raises:
            JobDetailsValidationError: On wrong types, unknown categories,
                out-of-range scores or an overlong salary
        """
        if not isinstance(data, dict):
            raise JobDetailsValidationError("structured_data", data, "expected an object")

        idioma = data.get("idioma_vaga") or "pt"
        if idioma not in LANGUAGES:
            raise JobDetailsValidationError("idioma_vaga", idioma, f"expected one of {list(LANGUAGES)}")

        salario = _optional_text("salario", data.get("salario"))
        if salario is not None and len(salario) > MAX_SALARY_LENGTH:
            raise JobDetailsValidationError("salario", salario, "salary information too long")

        return cls(
            empresa=_optional_text("empresa", data.get("empresa")) or "",
            cargo=_optional_text("cargo", data.get("cargo")) or "",
            local=_optional_text("local", data.get("local")) or "",
            modalidade=_enum_or_default(
                WorkMode, "modalidade", data.get("modalidade"), WorkMode.PRESENCIAL
            ),
            tipo_vaga=_enum_or_default(JobLevel, "tipo_vaga", data.get("tipo_vaga"), JobLevel.ESTAGIO),
            requisitos_obrigatorios=_string_list(
                "requisitos_obrigatorios", data.get("requisitos_obrigatorios")
            ),
            requisitos_desejaveis=_string_list(
                "requisitos_desejaveis", data.get("requisitos_desejaveis")
            ),
            responsabilidades=_string_list("responsabilidades", data.get("responsabilidades")),
            beneficios=_string_list("beneficios", data.get("beneficios")),
            salario=salario,
            idioma_vaga=idioma,
            requisitos_score=_optional_score("requisitos_score", data.get("requisitos_score")),
            fit=_optional_score("fit", data.get("fit")),
            etapa=_optional_text("etapa", data.get("etapa")),
            status=_enum_or_default(VagaStatus, "status", data.get("status"), None),
            observacoes=_optional_text("observacoes", data.get("observacoes")),
        )

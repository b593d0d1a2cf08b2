"""
LLM-based parsing of raw job descriptions.

Sends a pasted job description to an LLM provider, which returns a JSON
object with the structured job data plus a markdown analysis for the
candidate. Response text is parsed tolerantly and validated into JobDetails.
"""

import re
import time
from dataclasses import dataclass
from typing import Optional

from vagatrack.contexts.intake.form_mapper import build_observacoes
from vagatrack.contexts.intake.logger import _log_info, _log_warning, log_parse_result
from vagatrack.contexts.intake.vaga_data_structure import JobDetails
from vagatrack.utils.llm import (
    LLMProvider,
    LLMResponseParseError,
    LLMResponseTruncatedError,
    parse_object_response,
)

MIN_DESCRIPTION_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 50_000

MIN_ANALYSIS_LENGTH = 200
MAX_ANALYSIS_LENGTH = 10_000

# A truncated JSON response is requested once more
MAX_PARSE_ATTEMPTS = 2

REQUIRED_ANALYSIS_SECTIONS = (
    re.compile(r"## 🏢 Sobre a Empresa"),
    re.compile(r"## 💡 Oportunidades para se Destacar"),
    re.compile(r"## 🎯 Fit Técnico e Cultural"),
    re.compile(r"## 🗣️ Preparação para Entrevista"),
)

# =============================================================================
# PROMPT TEMPLATES
# =============================================================================

_SYSTEM_PROMPT = """\
Você é um especialista em análise de vagas de emprego.
Extraia dados estruturados da vaga e escreva uma análise para o candidato.
Retorne APENAS um objeto JSON válido, sem texto antes ou depois."""

_USER_PROMPT_TEMPLATE = """\
Analise a descrição de vaga abaixo e retorne um objeto JSON com duas chaves:

"structured_data": {{
  "empresa": "Nome da Empresa",
  "cargo": "Título exato da vaga",
  "local": "Cidade, Estado" ou "Remoto",
  "modalidade": "Presencial" | "Híbrido" | "Remoto",
  "tipo_vaga": "Estágio" | "Júnior" | "Pleno" | "Sênior",
  "requisitos_obrigatorios": ["..."],
  "requisitos_desejaveis": ["..."],
  "responsabilidades": ["..."],
  "beneficios": ["..."],
  "salario": "R$ 2000-3000" ou null,
  "idioma_vaga": "pt" | "en",
  "requisitos_score": 0-5 ou null,
  "fit": 0-5 ou null,
  "etapa": string ou null,
  "status": "Pendente" | "Avançado" | "Melou" | "Contratado" ou null,
  "observacoes": string ou null
}}

"analise_markdown": análise em markdown com EXATAMENTE estas seções:
## 🏢 Sobre a Empresa
## 💡 Oportunidades para se Destacar
## 🎯 Fit Técnico e Cultural
## 🗣️ Preparação para Entrevista

Regras:
- Extraia EXATAMENTE como escrito na descrição original
- Use [] ou null quando a informação não estiver presente
- Não invente informações

---
DESCRIÇÃO DA VAGA:
{description}"""


@dataclass
class JobParseResult:
    """Outcome of one AI parse."""

    details: JobDetails
    analysis_markdown: str
    duration_ms: int
    model: str
    input_tokens: int
    output_tokens: int

    @property
    def token_usage(self) -> int:
        return self.input_tokens + self.output_tokens


def validate_job_description(text: str) -> str:
    """
    Check a job description before spending tokens on it.

    Returns:
        The description, stripped

    Raises:
        ValueError: If shorter than 50 or longer than 50,000 characters
    """
    if not isinstance(text, str):
        raise ValueError("Job description must be a string")

    text = text.strip()
    if len(text) < MIN_DESCRIPTION_LENGTH:
        raise ValueError(
            f"Job description too short ({len(text)} chars, minimum {MIN_DESCRIPTION_LENGTH})"
        )
    if len(text) > MAX_DESCRIPTION_LENGTH:
        raise ValueError(
            f"Job description too long ({len(text)} chars, maximum {MAX_DESCRIPTION_LENGTH})"
        )
    return text


def validate_analysis_markdown(markdown: str) -> bool:
    """True if the analysis has a sane length and all four required sections."""
    if not MIN_ANALYSIS_LENGTH <= len(markdown) <= MAX_ANALYSIS_LENGTH:
        return False
    return all(section.search(markdown) for section in REQUIRED_ANALYSIS_SECTIONS)


def build_parse_prompt(description: str) -> str:
    return _USER_PROMPT_TEMPLATE.format(description=description)


def _payload_job_data(payload: dict) -> dict:
    # Some models skip the envelope and return the job data directly
    structured: Optional[dict] = payload.get("structured_data")
    if structured is None:
        if "empresa" not in payload:
            raise LLMResponseParseError("LLM response has no structured_data object")
        structured = payload
    return structured


def parse_job_with_llm(description: str, provider: LLMProvider) -> JobParseResult:
    """
    Parse a job description with an LLM.

    A response whose JSON was cut off by the output token limit is requested
    once more. An analysis that is missing or fails validation is replaced by
    the bullet summary from build_observacoes().

    Args:
        description: Raw job description (validated here)
        provider: Any LLMProvider (retries transient errors itself)

    Returns:
        JobParseResult with details, analysis, timing and token usage summed
        over every attempt

    Raises:
        ValueError: If the description fails validation
        LLMResponseParseError: If the response holds no usable JSON object
        JobDetailsValidationError: If structured_data violates the schema
    """
    description = validate_job_description(description)
    user_prompt = build_parse_prompt(description)

    start = time.monotonic()
    input_tokens = output_tokens = 0

    for attempt in range(1, MAX_PARSE_ATTEMPTS + 1):
        _log_info(
            f"Parsing job description ({len(description)} chars) with {provider.name} "
            f"(attempt {attempt}/{MAX_PARSE_ATTEMPTS})"
        )
        response = provider.generate(system_prompt=_SYSTEM_PROMPT, user_prompt=user_prompt)
        input_tokens += response.input_tokens
        output_tokens += response.output_tokens

        try:
            payload = parse_object_response(response.content)
        except LLMResponseTruncatedError:
            if attempt == MAX_PARSE_ATTEMPTS:
                raise
            _log_warning("Response JSON was truncated, retrying")
            continue
        break

    duration_ms = int((time.monotonic() - start) * 1000)

    details = JobDetails.from_dict(_payload_job_data(payload))

    analysis = payload.get("analise_markdown") or ""
    if not isinstance(analysis, str):
        raise LLMResponseParseError("analise_markdown must be a string")
    if not validate_analysis_markdown(analysis):
        _log_warning("Analysis markdown missing or invalid, using requirements summary")
        analysis = build_observacoes(details)

    log_parse_result(response.model, duration_ms, input_tokens + output_tokens)

    return JobParseResult(
        details=details,
        analysis_markdown=analysis,
        duration_ms=duration_ms,
        model=response.model,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
    )

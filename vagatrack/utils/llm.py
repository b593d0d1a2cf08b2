"""
LLM provider access for AI-assisted job parsing.

Each provider walks a chain of models: transient failures (overload, dropped
connections) are retried on the same model with exponential backoff, while a
quota error (HTTP 429) moves on to the next model in the chain. Provider SDKs
are imported lazily and are only needed with the `llm` extra installed.
"""

import json
import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, TypeVar

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

MAX_RETRIES = 5
BASE_DELAY = 1.0

T = TypeVar("T")


class LLMResponseParseError(ValueError):
    """Raised when an LLM response does not contain the expected JSON structure."""


class LLMResponseTruncatedError(LLMResponseParseError):
    """Raised when the JSON in a response stops mid-structure (output token limit)."""


class LLMQuotaExhaustedError(RuntimeError):
    """Raised when every model in a provider's chain is over quota."""


@dataclass(frozen=True)
class GenerationSettings:
    """Sampling settings shared by every provider call."""

    temperature: float = 0.1
    max_output_tokens: int = 8192

    @classmethod
    def from_env(cls) -> "GenerationSettings":
        """Read LLM_TEMPERATURE and LLM_MAX_OUTPUT_TOKENS, falling back to defaults."""
        return cls(
            temperature=float(os.getenv("LLM_TEMPERATURE", cls.temperature)),
            max_output_tokens=int(os.getenv("LLM_MAX_OUTPUT_TOKENS", cls.max_output_tokens)),
        )


@dataclass
class LLMResponse:
    """Response from an LLM provider."""

    content: str
    model: str
    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


def is_quota_error(error: object) -> bool:
    """
    Detect provider quota / rate-limit (HTTP 429) errors.

    Checks a numeric or string `status`/`status_code` attribute first, then
    falls back to the exception message mentioning "429" or "quota".
    """
    status = getattr(error, "status", None)
    if status is None:
        status = getattr(error, "status_code", None)
    if status is not None:
        try:
            if int(status) == 429:
                return True
        except (TypeError, ValueError):
            pass

    if isinstance(error, BaseException):
        message = str(error).lower()
        return "429" in message or "quota" in message

    return False


def _retry_with_backoff(
    operation: Callable[[], T],
    should_retry: Callable[[Exception], bool],
    label: str,
) -> T:
    """Run operation, sleeping BASE_DELAY * 2**attempt between retryable failures."""
    for attempt in range(MAX_RETRIES):
        try:
            return operation()
        except Exception as e:
            if not should_retry(e) or attempt == MAX_RETRIES - 1:
                raise
            delay = BASE_DELAY * (2**attempt)
            logger.warning(
                f"{label}: {type(e).__name__}, retrying in {delay:.1f}s... "
                f"(attempt {attempt + 1}/{MAX_RETRIES})"
            )
            time.sleep(delay)


class LLMProvider(ABC):
    """
    Abstract base for LLM providers.

    Subclasses set `provider_name`, `default_models` and
    `transient_errors`, and implement _call_api() for a single request.

    Args:
        models: Model fallback chain, tried in order (default: default_models)
        settings: Sampling settings (default: GenerationSettings.from_env())
    """

    provider_name: str
    default_models: Tuple[str, ...]
    transient_errors: Tuple[type, ...] = ()

    def __init__(
        self,
        models: Optional[Sequence[str]] = None,
        settings: Optional[GenerationSettings] = None,
    ):
        self.models = tuple(models or self.default_models)
        if not self.models:
            raise ValueError(f"{type(self).__name__} needs at least one model")
        self.settings = settings or GenerationSettings.from_env()
        self.model = self.models[0]

    @property
    def name(self) -> str:
        return f"{self.provider_name}/{self.model}"

    @abstractmethod
    def _call_api(self, model: str, system_prompt: str, user_prompt: str) -> LLMResponse:
        """Make a single API call (no retries)."""

    def _is_transient(self, error: Exception) -> bool:
        return isinstance(error, self.transient_errors) and not is_quota_error(error)

    def generate(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        """
        Generate a response, walking the model chain on quota errors.

        The model that answered becomes `self.model`.

        Raises:
            LLMQuotaExhaustedError: If every model in the chain is over quota
            Exception: Non-quota errors from the SDK propagate unchanged
        """
        last_error: Optional[Exception] = None

        for model in self.models:
            call = partial(self._call_api, model, system_prompt, user_prompt)
            try:
                response = _retry_with_backoff(
                    call, self._is_transient, f"{self.provider_name}/{model}"
                )
            except Exception as e:
                if not is_quota_error(e):
                    raise
                logger.warning(f"{self.provider_name}/{model} quota exceeded, trying next model")
                last_error = e
                continue

            self.model = model
            return response

        raise LLMQuotaExhaustedError(
            f"All {self.provider_name} models exhausted due to quota limits. "
            f"Last error: {last_error}"
        )


class AnthropicProvider(LLMProvider):
    """Anthropic Claude provider."""

    provider_name = "anthropic"
    default_models = ("claude-sonnet-4-20250514", "claude-3-5-haiku-20241022")

    def __init__(self, models=None, settings=None):
        # Lazy import - SDK is heavy, only load if this provider is used
        try:
            import anthropic
        except ImportError:
            raise ImportError("anthropic package required. Install with: pip install vagatrack[llm]")

        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable not set")

        self.client = anthropic.Anthropic(api_key=api_key)
        self.transient_errors = (
            anthropic.OverloadedError,
            anthropic.InternalServerError,
            anthropic.APIConnectionError,
        )
        super().__init__(models, settings)

    def _call_api(self, model: str, system_prompt: str, user_prompt: str) -> LLMResponse:
        response = self.client.messages.create(
            model=model,
            max_tokens=self.settings.max_output_tokens,
            temperature=self.settings.temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        return LLMResponse(
            content=response.content[0].text,
            model=model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )


class OpenAIProvider(LLMProvider):
    """OpenAI GPT provider (JSON mode)."""

    provider_name = "openai"
    default_models = ("gpt-4o-mini", "gpt-4o")

    def __init__(self, models=None, settings=None):
        try:
            import openai
        except ImportError:
            raise ImportError("openai package required. Install with: pip install vagatrack[llm]")

        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OPENAI_API_KEY environment variable not set")

        self.client = openai.OpenAI(api_key=api_key)
        self.transient_errors = (
            openai.InternalServerError,
            openai.APIConnectionError,
        )
        super().__init__(models, settings)

    def _call_api(self, model: str, system_prompt: str, user_prompt: str) -> LLMResponse:
        response = self.client.chat.completions.create(
            model=model,
            max_tokens=self.settings.max_output_tokens,
            temperature=self.settings.temperature,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )
        return LLMResponse(
            content=response.choices[0].message.content,
            model=model,
            input_tokens=response.usage.prompt_tokens,
            output_tokens=response.usage.completion_tokens,
        )


PROVIDERS = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
}


def get_provider(provider_name: str = None, model: str = None) -> LLMProvider:
    """
    Build the configured LLM provider.

    Args:
        provider_name: "anthropic" or "openai" (default: LLM_PROVIDER env var)
        model: Pin a single model instead of the provider's fallback chain
            (default: LLM_MODEL env var, if set)
    """
    provider_name = (provider_name or os.getenv("LLM_PROVIDER", "openai")).lower()
    model = model or os.getenv("LLM_MODEL")

    provider_cls = PROVIDERS.get(provider_name)
    if provider_cls is None:
        raise ValueError(f"Unknown provider: {provider_name}. Use one of {sorted(PROVIDERS)}")

    return provider_cls(models=[model] if model else None)


# --- Response Parsing Utilities ---


def _strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence if present."""
    if text.startswith("```"):
        first_newline = text.find("\n")
        if first_newline != -1:
            text = text[first_newline + 1 :]
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def is_json_truncated(text: str) -> bool:
    """
    True if a JSON object opens but its braces/brackets never close.

    Brackets inside string literals are ignored.
    """
    depth = 0
    in_string = False
    escaped = False
    opened = False

    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char in "{[":
            depth += 1
            opened = True
        elif char in "}]":
            depth -= 1

    return opened and (depth > 0 or in_string)


def parse_object_response(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object from an LLM response with tolerant fallback parsing.

    Tries, in order: the whole text, the text without a markdown code fence,
    and the outermost {...} span inside the text.

    Raises:
        LLMResponseTruncatedError: If the JSON stops before its structure closes
        LLMResponseParseError: If no JSON object can be recovered
    """
    text = text.strip()
    unfenced = _strip_code_fence(text)

    candidates = [text, unfenced]
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            result = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(result, dict):
            return result

    json_start = unfenced.find("{")
    if json_start != -1 and is_json_truncated(unfenced[json_start:]):
        raise LLMResponseTruncatedError(
            f"JSON truncated ({len(text)} chars): output may have exceeded the token limit"
        )

    preview = text[:80] + "..." if len(text) > 80 else text
    raise LLMResponseParseError(f"No JSON object found in LLM response: '{preview}'")

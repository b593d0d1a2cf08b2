"""
Quota configuration for LLM-backed endpoints.

Ceilings are fixed when a tracker is built. Values come from, in increasing
precedence: dataclass defaults, an optional YAML file, environment variables.

Example configs/quota.yaml:
    max_requests: 15
    request_window_seconds: 60
    max_tokens: 1000000
    token_window_seconds: 86400
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from omegaconf import OmegaConf

load_dotenv()

# Environment overrides (name -> QuotaConfig field)
ENV_OVERRIDES = {
    "AI_RATE_LIMIT_PER_MIN": "max_requests",
    "AI_RATE_LIMIT_TOKENS_PER_DAY": "max_tokens",
}


@dataclass(frozen=True)
class QuotaConfig:
    """
    Ceilings and window lengths for the two quota dimensions.

    Defaults mirror the free tier of the upstream LLM API:
    15 requests/minute and 1M tokens/day.
    """

    max_requests: int = 15
    request_window_seconds: int = 60
    max_tokens: int = 1_000_000
    token_window_seconds: int = 86_400
    cleanup_interval_seconds: int = 300

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"QuotaConfig.{f.name} must be a positive integer, got {value!r}")


def _read_yaml_overrides(config_path: Path) -> Dict[str, Any]:
    """Load a quota YAML file into a plain dict, rejecting unknown keys."""
    data = OmegaConf.to_container(OmegaConf.load(config_path), resolve=True) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Quota config must be a mapping: {config_path}")

    known = {f.name for f in fields(QuotaConfig)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown quota config keys in {config_path}: {sorted(unknown)}")
    return data


def _read_env_overrides() -> Dict[str, int]:
    overrides = {}
    for env_name, field_name in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or raw.strip() == "":
            continue
        try:
            overrides[field_name] = int(raw)
        except ValueError:
            raise ValueError(f"{env_name} must be an integer, got {raw!r}") from None
    return overrides


def load_quota_config(config_path: Optional[Path] = None) -> QuotaConfig:
    """
    Build the effective QuotaConfig.

    Args:
        config_path: Optional YAML file (defaults to QUOTA_CONFIG_PATH env var, if set)

    Returns:
        Validated QuotaConfig

    Raises:
        ValueError: On unknown keys or non-positive/non-integer values
    """
    if config_path is None and os.getenv("QUOTA_CONFIG_PATH"):
        config_path = Path(os.getenv("QUOTA_CONFIG_PATH"))

    values: Dict[str, Any] = {}
    if config_path is not None:
        values.update(_read_yaml_overrides(Path(config_path)))
    values.update(_read_env_overrides())

    return QuotaConfig(**values)

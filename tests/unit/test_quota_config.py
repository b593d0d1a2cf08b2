"""Unit tests for quota configuration loading."""

from pathlib import Path

import pytest

from vagatrack.contexts.quota.config import QuotaConfig, load_quota_config

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("QUOTA_CONFIG_PATH", "AI_RATE_LIMIT_PER_MIN", "AI_RATE_LIMIT_TOKENS_PER_DAY"):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.unit
class TestQuotaConfig:
    """Tests for QuotaConfig validation."""

    def test_defaults(self):
        config = QuotaConfig()

        assert config.max_requests == 15
        assert config.request_window_seconds == 60
        assert config.max_tokens == 1_000_000
        assert config.token_window_seconds == 86_400

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_requests": 0},
            {"max_tokens": -1},
            {"request_window_seconds": 1.5},
            {"token_window_seconds": True},
            {"cleanup_interval_seconds": "300"},
        ],
    )
    def test_rejects_non_positive_integers(self, kwargs):
        with pytest.raises(ValueError, match="positive integer"):
            QuotaConfig(**kwargs)


@pytest.mark.unit
class TestLoadQuotaConfig:
    """Tests for load_quota_config() precedence and validation."""

    def test_no_sources_gives_defaults(self):
        assert load_quota_config() == QuotaConfig()

    def test_yaml_overrides_defaults(self, tmp_path):
        config_file = tmp_path / "quota.yaml"
        config_file.write_text("max_requests: 5\ntoken_window_seconds: 3600\n")

        config = load_quota_config(config_file)

        assert config.max_requests == 5
        assert config.token_window_seconds == 3_600
        assert config.max_tokens == 1_000_000

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        config_file = tmp_path / "quota.yaml"
        config_file.write_text("max_requests: 5\n")
        monkeypatch.setenv("AI_RATE_LIMIT_PER_MIN", "30")
        monkeypatch.setenv("AI_RATE_LIMIT_TOKENS_PER_DAY", "2000")

        config = load_quota_config(config_file)

        assert config.max_requests == 30
        assert config.max_tokens == 2_000

    def test_config_path_from_env(self, tmp_path, monkeypatch):
        config_file = tmp_path / "quota.yaml"
        config_file.write_text("max_tokens: 500\n")
        monkeypatch.setenv("QUOTA_CONFIG_PATH", str(config_file))

        assert load_quota_config().max_tokens == 500

    def test_unknown_yaml_key_rejected(self, tmp_path):
        config_file = tmp_path / "quota.yaml"
        config_file.write_text("max_request: 5\n")

        with pytest.raises(ValueError, match="Unknown quota config keys"):
            load_quota_config(config_file)

    def test_non_integer_env_rejected(self, monkeypatch):
        monkeypatch.setenv("AI_RATE_LIMIT_PER_MIN", "fifteen")

        with pytest.raises(ValueError, match="AI_RATE_LIMIT_PER_MIN"):
            load_quota_config()

    def test_zero_from_yaml_rejected(self, tmp_path):
        config_file = tmp_path / "quota.yaml"
        config_file.write_text("max_requests: 0\n")

        with pytest.raises(ValueError):
            load_quota_config(config_file)

    def test_shipped_config_matches_defaults(self):
        assert load_quota_config(PROJECT_ROOT / "configs" / "quota.yaml") == QuotaConfig()

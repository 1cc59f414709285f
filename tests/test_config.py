"""Unit tests for the pydantic-settings configuration module."""

import os

import pytest
from pydantic import ValidationError

from autofill.classifier.state import PipelineState
from autofill.config import AutofillConfig, get_config, reset_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Drop any AUTOFILL_* variables from the developer's shell."""
    for key in list(os.environ):
        if key.upper().startswith("AUTOFILL_"):
            monkeypatch.delenv(key, raising=False)


class TestAutofillConfig:
    """Test AutofillConfig with pydantic-settings BaseSettings."""

    def test_default_config_values(self):
        config = AutofillConfig(_env_file=None)

        assert config.provider == "gemini"
        assert config.gemini_api_key.get_secret_value() == ""
        assert config.gemini_model == "gemini-pro"
        assert config.ollama_base_url == "http://localhost:11434"
        assert config.requests_per_minute == 60
        assert config.requests_per_day == 1500
        assert config.cache_max_size == 100
        assert config.cache_ttl_seconds == 86400
        assert config.max_output_tokens == 2048
        assert config.max_input_chars == 4000
        assert config.log_level == "INFO"
        assert config.log_format == "json"

    def test_environment_variable_override(self, monkeypatch):
        monkeypatch.setenv("AUTOFILL_PROVIDER", "Ollama")
        monkeypatch.setenv("AUTOFILL_REQUESTS_PER_MINUTE", "30")
        monkeypatch.setenv("AUTOFILL_GEMINI_API_KEY", "from-env")

        config = AutofillConfig(_env_file=None)

        assert config.provider == "ollama"
        assert config.requests_per_minute == 30
        assert config.gemini_api_key.get_secret_value() == "from-env"

    def test_rate_settings_reach_limiter(self, monkeypatch):
        monkeypatch.setenv("AUTOFILL_REQUESTS_PER_MINUTE", "30")
        monkeypatch.setenv("AUTOFILL_REQUESTS_PER_DAY", "10")

        limiter = PipelineState.from_config(AutofillConfig(_env_file=None)).rate_limiter

        assert limiter.min_interval == 2.0
        assert limiter.requests_per_day == 10

    def test_api_key_hidden_in_repr(self):
        config = AutofillConfig(_env_file=None, gemini_api_key="super-secret")
        assert "super-secret" not in repr(config)

    def test_invalid_provider(self):
        with pytest.raises(ValidationError, match="Invalid provider"):
            AutofillConfig(_env_file=None, provider="openai")

    @pytest.mark.parametrize(
        "field,value",
        [
            ("requests_per_minute", 0),
            ("cache_max_size", 0),
            ("max_output_tokens", 10),
            ("temperature", 3.0),
            ("log_format", "xml"),
        ],
    )
    def test_out_of_range_values(self, field, value):
        with pytest.raises(ValidationError):
            AutofillConfig(_env_file=None, **{field: value})

    def test_log_level_normalized(self):
        assert AutofillConfig(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_config_is_frozen(self):
        config = AutofillConfig(_env_file=None)
        with pytest.raises(ValidationError):
            config.requests_per_minute = 5


class TestConfigSingleton:
    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_reset_config_reloads(self, monkeypatch):
        first = get_config()
        monkeypatch.setenv("AUTOFILL_CACHE_MAX_SIZE", "7")
        reset_config()

        second = get_config()

        assert second is not first
        assert second.cache_max_size == 7

"""
Unit Tests for Engine Configuration
"""

import pytest
from pydantic import ValidationError

from config.engine_config import EngineSettings


class TestEngineSettings:
    """Tests for engine thresholds and their validation."""

    def test_defaults(self):
        settings = EngineSettings()

        assert settings.min_input_length == 20
        assert settings.negation_window == 80
        assert settings.recency_window_months == 6
        assert settings.max_workers == 1
        assert settings.vocabulary_path is None

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("ENGINE_NEGATION_WINDOW", "120")
        monkeypatch.setenv("ENGINE_MAX_WORKERS", "4")

        settings = EngineSettings()

        assert settings.negation_window == 120
        assert settings.max_workers == 4

    def test_bare_mention_must_score_below_present(self):
        with pytest.raises(ValidationError, match="confidence_bare_mention"):
            EngineSettings(confidence_bare_mention=0.9, confidence_present=0.9)

    def test_frozen(self):
        settings = EngineSettings()

        with pytest.raises(ValidationError):
            settings.negation_window = 10

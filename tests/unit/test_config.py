"""
Unit tests for settings.
"""

import pytest
from pydantic import ValidationError

from config import Settings, get_settings
from revision_engine.study.mastery_calculator import MasteryClassifier
from revision_engine.study.stats_aggregator import StatsAggregator


class TestSettings:
    """Tests for Settings defaults and overrides."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("MAX_ATTEMPTS", raising=False)
        settings = Settings(_env_file=None)

        assert settings.max_attempts == 50
        assert settings.practice_seconds_per_question == 45
        assert settings.timed_seconds_per_question == 60
        assert settings.quiz_api_retry_attempts == 2

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("MAX_ATTEMPTS", "10")
        monkeypatch.setenv("WEAK_ACCURACY_BELOW", "70")

        settings = Settings(_env_file=None)

        assert settings.max_attempts == 10
        assert settings.weak_accuracy_below == 70

    def test_invalid_max_attempts(self, monkeypatch):
        monkeypatch.setenv("MAX_ATTEMPTS", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_component_configs(self):
        settings = Settings(_env_file=None, timezone="UTC", weak_slow_seconds=90)

        aggregator = StatsAggregator(**settings.get_stats_config())
        classifier = MasteryClassifier(**settings.get_mastery_config())

        assert aggregator.timed_seconds == 60
        assert classifier.weak_slow_seconds == 90

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()

"""Unit tests for engine configuration."""

import pytest
from pydantic import ValidationError

from jba.config.analytics import DEFAULT_CONFIG, AnalyticsConfig
from jba.config.settings import Settings


class TestAnalyticsConfig:
    def test_defaults(self) -> None:
        assert DEFAULT_CONFIG.decay_rate == 0.95
        assert DEFAULT_CONFIG.minimum_raw_cases == 200
        assert DEFAULT_CONFIG.comprehensive_case_threshold == 500
        assert DEFAULT_CONFIG.tier_breakpoints == (1000.0, 750.0, 500.0)
        assert DEFAULT_CONFIG.minimum_peer_judges_for_baseline == 5

    @pytest.mark.parametrize(
        "overrides",
        [
            {"decay_rate": 0.0},
            {"decay_rate": 1.5},
            {"tier_breakpoints": (500.0, 750.0, 1000.0)},
            {"minimum_peer_judges_for_baseline": 4},
            {"anomaly_sigma_threshold": 3.0, "high_severity_sigma": 2.0},
            {"minimum_raw_cases": 600},
        ],
    )
    def test_rejects_invalid_values(self, overrides) -> None:
        with pytest.raises(ValidationError):
            AnalyticsConfig(**overrides)

    def test_is_frozen(self) -> None:
        with pytest.raises(ValidationError):
            DEFAULT_CONFIG.decay_rate = 0.9


class TestSettings:
    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("JBA_DECAY_RATE", "0.9")
        monkeypatch.setenv("JBA_MAX_ANALYZER_WORKERS", "2")
        config = Settings().analytics_config()
        assert config.decay_rate == 0.9
        assert config.max_analyzer_workers == 2
        assert config.comprehensive_case_threshold == 500

"""Engine configuration value object.

Every threshold the analytics pipeline uses lives here and is passed
explicitly from the report builder down to the analyzers, the baseline
calculator, the confidence scorer and the anomaly detector.  Nothing in the
pipeline reads thresholds from module globals or the environment.
"""

from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AnalyticsConfig(BaseModel):
    """Thresholds and tuning knobs for one report generation."""

    model_config = ConfigDict(frozen=True)

    # Temporal weighting
    decay_rate: float = Field(0.95, gt=0.0, le=1.0, description="Per-year decay factor")
    freshness_window_years: float = Field(2.0, gt=0.0)

    # Dataset gating
    minimum_raw_cases: int = Field(200, ge=0, description="Below this the report is degraded")
    comprehensive_case_threshold: int = Field(
        500, ge=0, description="Raw cases needed before breakpoint tiering applies"
    )

    # Confidence tiers (Tier1, Tier2, Tier3 lower bounds on effective cases)
    tier_breakpoints: Tuple[float, float, float] = (1000.0, 750.0, 500.0)

    # Per-dimension support floors (effective cases)
    motion_low_confidence_floor: float = Field(10.0, ge=0.0)
    party_cell_floor: float = Field(20.0, ge=0.0)
    value_correlation_floor: float = Field(15.0, ge=0.0)

    # Baselines
    minimum_peer_judges_for_baseline: int = Field(5, ge=5)
    baseline_min_judge_effective_cases: float = Field(5.0, ge=0.0)
    baseline_ttl_seconds: int = Field(86400, gt=0)

    # Anomaly detection
    anomaly_sigma_threshold: float = Field(2.0, gt=0.0)
    high_severity_sigma: float = Field(3.0, gt=0.0)
    anomaly_min_effective_sample: float = Field(20.0, ge=0.0)

    # Execution
    max_analyzer_workers: int = Field(4, ge=1, le=32)

    @field_validator("tier_breakpoints")
    @classmethod
    def _descending_breakpoints(cls, v: Tuple[float, float, float]) -> Tuple[float, float, float]:
        if not (v[0] > v[1] > v[2] > 0):
            raise ValueError("tier_breakpoints must be strictly descending and positive")
        return v

    @model_validator(mode="after")
    def _check_sigma_order(self) -> "AnalyticsConfig":
        if self.high_severity_sigma <= self.anomaly_sigma_threshold:
            raise ValueError("high_severity_sigma must exceed anomaly_sigma_threshold")
        if self.comprehensive_case_threshold < self.minimum_raw_cases:
            raise ValueError("comprehensive_case_threshold must be >= minimum_raw_cases")
        return self


DEFAULT_CONFIG = AnalyticsConfig()

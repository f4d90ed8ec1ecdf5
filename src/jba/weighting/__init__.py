"""Temporal decay weights and the weighted statistics built on them."""

from .temporal import TemporalWeightEngine, effective_case_count, weight  # noqa: F401

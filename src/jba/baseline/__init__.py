"""Jurisdiction peer baselines and their caches."""

from .cache import BaselineSnapshot, InMemoryBaselineCache, SQLiteBaselineCache  # noqa: F401
from .calculator import BaselineCalculator, InMemoryPeerSource, WeightedWelford  # noqa: F401

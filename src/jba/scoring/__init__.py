from .confidence import ConfidenceScorer, ConfidenceTier  # noqa: F401

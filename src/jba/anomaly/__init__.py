from .detector import AnomalyDetector  # noqa: F401

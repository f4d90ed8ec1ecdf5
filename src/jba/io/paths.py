"""Cache directory management."""

from pathlib import Path

from ..config.settings import settings


def get_cache_path(cache_type: str = "baselines") -> Path:
    cache_path = settings.cache_dir / cache_type
    cache_path.mkdir(parents=True, exist_ok=True)
    return cache_path

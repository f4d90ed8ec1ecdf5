"""Baseline profile caches.

A jurisdiction's profiles are always written as one snapshot and replaced
as a whole, so a reader sees either the previous set or the new set and
never a mixture.  Two implementations are provided: an in-process cache and
a persistent SQLite cache for sharing baselines between CLI runs.
"""

import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import BaselineUnavailableError
from ..core.models import BaselineProfile, Dimension
from ..utils.logging import get_logger

logger = get_logger(__name__)


class BaselineSnapshot(BaseModel):
    """All peer profiles computed for a jurisdiction in one pass."""

    model_config = ConfigDict(frozen=True)

    jurisdiction: str
    computed_at: datetime
    ttl_seconds: int = 86400
    judge_count: int = 0
    profiles: List[BaselineProfile] = Field(default_factory=list)

    def is_expired(self, now: datetime) -> bool:
        return (now - self.computed_at).total_seconds() >= self.ttl_seconds

    def lookup(self, dimension: Dimension, metric_key: str) -> Optional[BaselineProfile]:
        for profile in self.profiles:
            if profile.metric_key == metric_key and profile.dimension is dimension:
                return profile
        return None

    def by_metric_key(self) -> Dict[str, BaselineProfile]:
        return {p.metric_key: p for p in self.profiles}


class BaselineCache(Protocol):
    """Storage for baseline snapshots keyed by jurisdiction."""

    def get(self, jurisdiction: str, dimension: Dimension, metric_key: str) -> Optional[BaselineProfile]:
        ...

    def snapshot(self, jurisdiction: str) -> Optional[BaselineSnapshot]:
        ...

    def replace(self, snapshot: BaselineSnapshot) -> None:
        ...


class InMemoryBaselineCache:
    """Thread-safe in-process cache holding immutable snapshots."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshots: Dict[str, BaselineSnapshot] = {}

    def get(self, jurisdiction: str, dimension: Dimension, metric_key: str) -> Optional[BaselineProfile]:
        snap = self.snapshot(jurisdiction)
        return snap.lookup(dimension, metric_key) if snap is not None else None

    def snapshot(self, jurisdiction: str) -> Optional[BaselineSnapshot]:
        with self._lock:
            return self._snapshots.get(jurisdiction)

    def replace(self, snapshot: BaselineSnapshot) -> None:
        with self._lock:
            self._snapshots[snapshot.jurisdiction] = snapshot

    def clear(self) -> None:
        with self._lock:
            self._snapshots.clear()


class SQLiteBaselineCache:
    """
    SQLite-backed baseline cache persisting snapshots across processes.

    Each replace runs in a single transaction so concurrent readers keep
    seeing the previous snapshot until it commits.
    """

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = cache_dir
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.db_path = cache_dir / "baselines.db"
        self._lock = threading.Lock()
        try:
            self.conn = sqlite3.connect(
                str(self.db_path), isolation_level="DEFERRED", check_same_thread=False
            )
            # Performance options
            self.conn.execute("PRAGMA journal_mode = WAL")
            self.conn.execute("PRAGMA synchronous = NORMAL")
            self.conn.execute("PRAGMA temp_store = MEMORY")
            self._init_schema()
        except sqlite3.Error as e:
            raise BaselineUnavailableError(f"Cannot open baseline cache at {self.db_path}: {e}") from e

    def _init_schema(self) -> None:
        self.conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS baseline_runs (
                jurisdiction TEXT PRIMARY KEY,
                computed_at TEXT NOT NULL,
                ttl_seconds INTEGER NOT NULL,
                judge_count INTEGER DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS baseline_profiles (
                jurisdiction TEXT NOT NULL,
                dimension TEXT NOT NULL,
                metric_key TEXT NOT NULL,
                profile_data TEXT NOT NULL,
                PRIMARY KEY (jurisdiction, dimension, metric_key)
            );

            CREATE INDEX IF NOT EXISTS idx_profiles_jurisdiction ON baseline_profiles(jurisdiction);
            """
        )
        self.conn.commit()

    def get(self, jurisdiction: str, dimension: Dimension, metric_key: str) -> Optional[BaselineProfile]:
        try:
            with self._lock:
                cur = self.conn.execute(
                    """SELECT profile_data FROM baseline_profiles
                       WHERE jurisdiction = ? AND dimension = ? AND metric_key = ?""",
                    (jurisdiction, dimension.value, metric_key),
                )
                row = cur.fetchone()
        except sqlite3.Error as e:
            raise BaselineUnavailableError(f"Baseline cache read failed: {e}") from e
        if not row:
            return None
        return BaselineProfile.model_validate_json(row[0])

    def snapshot(self, jurisdiction: str) -> Optional[BaselineSnapshot]:
        try:
            with self._lock:
                run = self.conn.execute(
                    "SELECT computed_at, ttl_seconds, judge_count FROM baseline_runs WHERE jurisdiction = ?",
                    (jurisdiction,),
                ).fetchone()
                if not run:
                    return None
                rows = self.conn.execute(
                    """SELECT profile_data FROM baseline_profiles
                       WHERE jurisdiction = ? ORDER BY dimension, metric_key""",
                    (jurisdiction,),
                ).fetchall()
        except sqlite3.Error as e:
            raise BaselineUnavailableError(f"Baseline cache read failed: {e}") from e
        return BaselineSnapshot(
            jurisdiction=jurisdiction,
            computed_at=datetime.fromisoformat(run[0]),
            ttl_seconds=run[1],
            judge_count=run[2],
            profiles=[BaselineProfile.model_validate_json(data) for (data,) in rows],
        )

    def replace(self, snapshot: BaselineSnapshot) -> None:
        try:
            with self._lock, self.conn:
                self.conn.execute(
                    "DELETE FROM baseline_profiles WHERE jurisdiction = ?", (snapshot.jurisdiction,)
                )
                self.conn.executemany(
                    """INSERT INTO baseline_profiles
                    (jurisdiction, dimension, metric_key, profile_data)
                    VALUES (?, ?, ?, ?)""",
                    [
                        (p.jurisdiction, p.dimension.value, p.metric_key, p.model_dump_json())
                        for p in snapshot.profiles
                    ],
                )
                self.conn.execute(
                    """INSERT OR REPLACE INTO baseline_runs
                    (jurisdiction, computed_at, ttl_seconds, judge_count)
                    VALUES (?, ?, ?, ?)""",
                    (
                        snapshot.jurisdiction,
                        snapshot.computed_at.isoformat(),
                        snapshot.ttl_seconds,
                        snapshot.judge_count,
                    ),
                )
        except sqlite3.Error as e:
            raise BaselineUnavailableError(f"Baseline cache write failed: {e}") from e
        logger.debug(f"Cached {len(snapshot.profiles)} baseline profiles for {snapshot.jurisdiction}")

    def close(self) -> None:
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

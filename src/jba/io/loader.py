"""Load case exports from disk for the CLI.

The engine itself takes in-memory case lists; these helpers only turn the
usual export formats into lists of plain mappings.  Shape checking and
field parsing stay in :func:`jba.io.validation.validate_cases`.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

import numpy as np
import pandas as pd

from ..core.errors import MalformedInputError
from ..utils.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_SUFFIXES = (".json", ".jsonl", ".ndjson", ".csv", ".parquet")

# Delimiters accepted inside a flat-file party_types cell
_PARTY_DELIMITERS = (";", "|", ",")


def _split_parties(value: Any) -> Any:
    if isinstance(value, np.ndarray):
        return value.tolist()
    if not isinstance(value, str):
        return value
    for delimiter in _PARTY_DELIMITERS:
        if delimiter in value:
            return [part.strip() for part in value.split(delimiter) if part.strip()]
    return [value.strip()] if value.strip() else []


def _frame_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    df = df.astype(object).where(pd.notna(df), None)
    if "party_types" in df.columns:
        df["party_types"] = df["party_types"].map(_split_parties)
    return df.to_dict(orient="records")


def load_case_file(path: Path) -> List[Dict[str, Any]]:
    """Read a JSON, JSON Lines, CSV or Parquet export into case mappings.

    JSON files may hold either a list of cases or an object with a
    ``cases`` list.
    """
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise MalformedInputError(f"Unsupported case file format: {path.suffix or path.name}")

    if suffix == ".json":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict) and "cases" in data:
            data = data["cases"]
        if not isinstance(data, list):
            raise MalformedInputError(f"{path.name}: expected a list of cases")
        records = data
    elif suffix in (".jsonl", ".ndjson"):
        records = _frame_to_records(pd.read_json(path, lines=True, convert_dates=False, dtype=False))
    elif suffix == ".csv":
        records = _frame_to_records(pd.read_csv(path, dtype=str, keep_default_na=True))
    else:
        records = _frame_to_records(pd.read_parquet(path))

    logger.info(f"Loaded {len(records)} cases from {path}")
    return records


def load_peers_file(path: Path) -> Dict[str, List[Any]]:
    """Read a JSON object mapping peer judge ids to their case lists."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise MalformedInputError(f"{path.name}: expected an object mapping judge ids to case lists")
    peers: Dict[str, List[Any]] = {}
    for judge_id, cases in data.items():
        if not isinstance(cases, list):
            raise MalformedInputError(f"{path.name}: cases for judge {judge_id} must be a list")
        peers[str(judge_id)] = cases
    logger.info(f"Loaded {len(peers)} peer judges from {path}")
    return peers

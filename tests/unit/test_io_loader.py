"""Unit tests for reading case exports from disk."""

import json

import pandas as pd
import pytest

from jba.core.errors import MalformedInputError
from jba.io.loader import load_case_file, load_peers_file
from jba.io.validation import validate_cases
from tests.helpers import make_case, make_dataset


class TestLoadCaseFile:
    """Tests for the supported export formats."""

    def test_json_list(self, tmp_path) -> None:
        path = tmp_path / "cases.json"
        path.write_text(json.dumps(make_dataset(5)))
        assert len(load_case_file(path)) == 5

    def test_json_object_with_cases_key(self, tmp_path) -> None:
        path = tmp_path / "cases.json"
        path.write_text(json.dumps({"judge": "j-1", "cases": make_dataset(3)}))
        assert [c["case_id"] for c in load_case_file(path)] == ["case-0", "case-1", "case-2"]

    def test_json_wrong_shape(self, tmp_path) -> None:
        path = tmp_path / "cases.json"
        path.write_text(json.dumps({"judge": "j-1"}))
        with pytest.raises(MalformedInputError):
            load_case_file(path)

    def test_jsonl(self, tmp_path) -> None:
        path = tmp_path / "cases.jsonl"
        path.write_text("\n".join(json.dumps(c) for c in make_dataset(4)))
        records, _ = validate_cases(load_case_file(path))
        assert len(records) == 4
        assert records[0].decision_date is not None

    def test_csv_splits_party_types(self, tmp_path) -> None:
        path = tmp_path / "cases.csv"
        pd.DataFrame(
            [
                {**make_case(case_id="a"), "party_types": "individual; corporation"},
                {**make_case(case_id="b", case_value=None), "party_types": "government"},
            ]
        ).to_csv(path, index=False)

        rows = load_case_file(path)
        assert rows[0]["party_types"] == ["individual", "corporation"]
        assert rows[1]["party_types"] == ["government"]
        assert rows[1]["case_value"] is None

        records, audit = validate_cases(rows)
        assert records[0].case_value == 100_000.0
        assert audit.missing_case_value == 1

    def test_unsupported_suffix(self, tmp_path) -> None:
        path = tmp_path / "cases.xml"
        path.write_text("<cases/>")
        with pytest.raises(MalformedInputError, match="Unsupported"):
            load_case_file(path)


class TestLoadPeersFile:
    def test_peers_mapping(self, tmp_path) -> None:
        path = tmp_path / "peers.json"
        path.write_text(json.dumps({"j-1": make_dataset(2), 7: []}))
        peers = load_peers_file(path)
        assert set(peers) == {"j-1", "7"}

    def test_peers_must_be_lists(self, tmp_path) -> None:
        path = tmp_path / "peers.json"
        path.write_text(json.dumps({"j-1": {"cases": []}}))
        with pytest.raises(MalformedInputError, match="j-1"):
            load_peers_file(path)

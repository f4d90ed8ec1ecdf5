"""Integration tests for the command line interface."""

import json

import pytest
from typer.testing import CliRunner

from jba.cli.main import app
from tests.helpers import AS_OF, make_dataset, make_peers

runner = CliRunner()


@pytest.fixture
def cases_file(tmp_path):
    """Write a 300-case export for one judge."""
    path = tmp_path / "cases.json"
    path.write_text(json.dumps({"cases": make_dataset(300, grant_rate=0.95)}))
    return path


@pytest.fixture
def peers_file(tmp_path):
    """Write six peer judges to a JSON file."""
    path = tmp_path / "peers.json"
    path.write_text(json.dumps(make_peers([0.4, 0.45, 0.5, 0.55, 0.6, 0.5])))
    return path


@pytest.mark.integration
def test_report_json_to_stdout(cases_file):
    """Test the default JSON report on stdout."""
    result = runner.invoke(
        app,
        ["report", str(cases_file), "--judge-id", "j-1", "-j", "ca-sf", "--as-of", AS_OF.isoformat()],
    )
    assert result.exit_code == 0, result.output

    report = json.loads(result.stdout)
    assert report["metadata"]["judge_id"] == "j-1"
    assert report["metadata"]["total_cases"] == 300
    assert report["state"] == "finalized"
    assert report["confidence_tier"]["tier"] == "limited"


@pytest.mark.integration
def test_report_with_peers_flags_anomaly(cases_file, peers_file):
    """Test peer comparison from a peers file without the persistent cache."""
    result = runner.invoke(
        app,
        [
            "report",
            str(cases_file),
            "--judge-id",
            "j-1",
            "-j",
            "ca-sf",
            "--as-of",
            AS_OF.isoformat(),
            "--peers",
            str(peers_file),
            "--no-cache",
        ],
    )
    assert result.exit_code == 0, result.output
    report = json.loads(result.stdout)
    refs = [f["metric_ref"] for f in report["flagged_anomalies"]]
    assert "motion.grant_rate.overall" in refs


@pytest.mark.integration
def test_report_text_to_file(cases_file, tmp_path):
    """Test the text export written to a file."""
    output = tmp_path / "out" / "report.txt"
    result = runner.invoke(
        app,
        [
            "report",
            str(cases_file),
            "--judge-id",
            "j-1",
            "-j",
            "ca-sf",
            "--judge-name",
            "Judge Example",
            "--format",
            "text",
            "--output",
            str(output),
        ],
    )
    assert result.exit_code == 0, result.output
    text = output.read_text(encoding="utf-8")
    assert "Judge: Judge Example" in text
    assert "End of Report" in text
    assert "Report Summary" in result.output


@pytest.mark.integration
def test_report_rejects_bad_date(cases_file):
    result = runner.invoke(
        app, ["report", str(cases_file), "--judge-id", "j-1", "-j", "ca-sf", "--as-of", "yesterday"]
    )
    assert result.exit_code == 1
    assert "--as-of must be a date" in result.output


@pytest.mark.integration
def test_report_rejects_malformed_file(tmp_path):
    path = tmp_path / "cases.json"
    path.write_text(json.dumps({"judge": "j-1"}))
    result = runner.invoke(app, ["report", str(path), "--judge-id", "j-1", "-j", "ca-sf"])
    assert result.exit_code == 1
    assert "Error" in result.output


@pytest.mark.integration
def test_baseline_command(peers_file):
    """Test printing peer baselines."""
    result = runner.invoke(app, ["baseline", str(peers_file), "-j", "ca-sf", "--as-of", AS_OF.isoformat()])
    assert result.exit_code == 0, result.output
    assert "Peer Baselines: ca-sf" in result.output


@pytest.mark.integration
def test_baseline_command_with_too_few_peers(tmp_path):
    path = tmp_path / "peers.json"
    path.write_text(json.dumps(make_peers([0.5, 0.6])))
    result = runner.invoke(app, ["baseline", str(path), "-j", "ca-sf", "--as-of", AS_OF.isoformat()])
    assert result.exit_code == 0
    assert "No baseline profiles" in result.output

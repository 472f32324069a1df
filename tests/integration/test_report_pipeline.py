"""
Integration test for the report pipeline.

Tests end-to-end flow from an exported events file to the JSON report,
including alert evaluation.
"""

import json

import pytest
from datetime import datetime, timedelta, timezone

from backend.main import build_report, load_rules, main
from pulse.core.exceptions import DataValidationError, IngestionError
from pulse.data.ingestion import ingest_events

NOW = datetime(2025, 2, 7, 12, 30, tzinfo=timezone.utc)


def _row(ts, path="/api/users", status=200, latency=100, method="GET"):
    return {
        "method": method,
        "path": path,
        "statusCode": status,
        "responseTimeMs": latency,
        "timestamp": ts.isoformat(),
    }


@pytest.fixture
def events_file(tmp_path):
    """
    48 hours of steady traffic plus a latency spike in the 11:00 bucket.

    - two requests per hour (90 and 110 ms), a 500 every 10th hour
    - four 2000 ms requests to /api/reports at 11:20
    - one invalid row
    """
    top_of_hour = NOW.replace(minute=0)
    rows = []
    for hours_back in range(1, 49):
        base = top_of_hour - timedelta(hours=hours_back)
        status = 500 if hours_back % 10 == 0 else 200
        rows.append(_row(base + timedelta(minutes=10), status=status, latency=90))
        rows.append(_row(base + timedelta(minutes=40), path="/api/orders", latency=110, method="POST"))
    spike = top_of_hour - timedelta(minutes=40)
    rows.extend(_row(spike, path="/api/reports", latency=2000) for _ in range(4))
    rows.append({"method": "GET", "path": "/api/users", "statusCode": 1000})

    path = tmp_path / "events.ndjson"
    path.write_text("\n".join(json.dumps(r) for r in rows) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def rules_file(tmp_path):
    path = tmp_path / "alerts.json"
    path.write_text(
        json.dumps({
            "alerts": [
                {"name": "Slow API", "conditionType": "response_time_avg", "threshold": 500},
                {"name": "Error spike", "conditionType": "error_rate", "threshold": 50},
            ]
        }),
        encoding="utf-8",
    )
    return path


@pytest.mark.integration
class TestReportPipeline:
    """Test file -> events -> report."""

    def test_build_report(self, events_file, rules_file):
        events, skipped = ingest_events(events_file)
        assert len(events) == 100
        assert skipped == 1

        report = build_report(events, period="24h", now=NOW, rules=load_rules(rules_file))

        overview = report["overview"]
        assert overview["total_requests"] == 51
        assert overview["changes"]["requests"] == 6
        assert overview["error_rate"] == pytest.approx(3.92)

        endpoints = report["endpoints"]
        assert [e["path"] for e in endpoints] == ["/api/orders", "/api/users", "/api/reports"]
        assert endpoints[2]["avg_response_time"] == 2000

        timeseries = report["timeseries"]
        assert timeseries["bucket_minutes"] == 60
        assert len(timeseries["points"]) == 25
        assert sum(p["value"] for p in timeseries["points"]) == 51

        [alert] = report["alerts"]
        assert alert["alert_name"] == "Slow API"
        assert alert["severity"] == "critical"
        assert alert["value"] == 1367
        assert alert["verdict"]["direction"] == "high"

    def test_cli_prints_json(self, events_file, rules_file, capsys):
        exit_code = main([
            str(events_file),
            "--period", "1h",
            "--metric", "avg_response_time",
            "--rules", str(rules_file),
            "--now", NOW.isoformat(),
        ])

        assert exit_code == 0
        report = json.loads(capsys.readouterr().out)
        assert report["events"] == {"loaded": 100, "skipped": 1}
        assert report["timeseries"]["metric"] == "avg_response_time"
        assert len(report["timeseries"]["points"]) == 13
        assert report["generated_at"].startswith("2025-02-07T12:30:00")
        assert len(report["alerts"]) == 1

    def test_cli_without_rules_has_no_alerts(self, events_file, capsys):
        assert main([str(events_file), "--now", NOW.isoformat(), "--limit", "1"]) == 0

        report = json.loads(capsys.readouterr().out)
        assert "alerts" not in report
        assert len(report["endpoints"]) == 1

    def test_cli_missing_file_fails(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.ndjson")]) == 1
        assert capsys.readouterr().out == ""

    def test_invalid_rules_rejected(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"name": "x", "conditionType": "cpu", "threshold": 1}]), encoding="utf-8")

        with pytest.raises(DataValidationError):
            load_rules(path)

    def test_rules_file_that_is_not_json_rejected(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text("{\"alerts\": [", encoding="utf-8")

        with pytest.raises(DataValidationError):
            load_rules(path)

    def test_missing_rules_file_raises_ingestion_error(self, tmp_path):
        with pytest.raises(IngestionError):
            load_rules(tmp_path / "missing.json")

    def test_cli_bad_rules_file_fails_cleanly(self, events_file, tmp_path, capsys):
        bad_rules = tmp_path / "rules.json"
        bad_rules.write_text("not json", encoding="utf-8")

        assert main([str(events_file), "--rules", str(bad_rules)]) == 1
        assert main([str(events_file), "--rules", str(tmp_path / "missing.json")]) == 1
        assert capsys.readouterr().out == ""

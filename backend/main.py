"""
Command-line report over an exported events file.

Prints the dashboard views (overview, endpoints, timeseries) and, when a
rules file is given, the alerts those rules would trigger, as JSON.

Usage:
    pulse-report events.ndjson --period 24h --metric avg_response_time
    pulse-report events.csv --rules alerts.json --now 2025-02-07T12:00:00Z
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from dotenv import load_dotenv
from pydantic import TypeAdapter, ValidationError

from backend.alerts import AlertEvaluator, AlertRule
from backend.analytics import (
    build_event_timeseries,
    compute_overview,
    endpoint_breakdown,
    split_periods,
)
from pulse.core.config import config
from pulse.core.exceptions import DataValidationError, IngestionError, PulseError
from pulse.core.logging_config import setup_logging
from pulse.data.ingestion import ingest_events
from pulse.data.schema import ApiEvent, ensure_utc, utc_now

load_dotenv()

logger = setup_logging("pulse")

_RULES_ADAPTER = TypeAdapter(List[AlertRule])


def load_rules(path: Path) -> List[AlertRule]:
    """
    Read alert rules from a JSON array or an {"alerts": [...]} document.

    Raises:
        IngestionError: If the file can't be read
        DataValidationError: If the file is not JSON or any rule is invalid
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Error reading rules file {path}: {e}")
        raise IngestionError(f"Failed to read alert rules: {e}") from e

    try:
        document = json.loads(content)
    except json.JSONDecodeError as e:
        raise DataValidationError(f"Invalid JSON in alert rules {path}: {e}") from e

    rows = document.get("alerts", []) if isinstance(document, dict) else document
    try:
        return _RULES_ADAPTER.validate_python(rows)
    except ValidationError as e:
        raise DataValidationError(f"Invalid alert rules in {path}: {e}") from e


def build_report(
    events: Sequence[ApiEvent],
    period: str = "24h",
    metric: str = "requests",
    now: Optional[datetime] = None,
    rules: Sequence[AlertRule] = (),
    endpoint_limit: Optional[int] = 10,
) -> Dict[str, Any]:
    """Assemble the JSON-ready report for a set of events."""
    now = ensure_utc(now) if now is not None else utc_now()
    current, previous = split_periods(events, now=now)
    window, series = build_event_timeseries(events, period=period, metric=metric, now=now)

    report: Dict[str, Any] = {
        "generated_at": now.isoformat(),
        "overview": compute_overview(current, previous).model_dump(mode="json"),
        "endpoints": [ep.model_dump(mode="json") for ep in endpoint_breakdown(current, endpoint_limit)],
        "timeseries": {
            "metric": metric,
            "period": period,
            "bucket_minutes": window.bucket_minutes,
            "points": [point.model_dump(mode="json") for point in series],
        },
    }
    if rules:
        alerts = AlertEvaluator().evaluate(rules, events, now=now)
        report["alerts"] = [alert.model_dump(mode="json") for alert in alerts]
    return report


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Pulse API telemetry report")
    parser.add_argument("events", type=Path, help="Events file (.json, .ndjson or .csv)")
    parser.add_argument("--format", default="auto", choices=["auto", "json", "csv"])
    parser.add_argument("--period", default=config.default_period, help="1h, 6h, 24h, 7d or 30d")
    parser.add_argument("--metric", default="requests", help="requests, avg_response_time, error_rate or p95_response_time")
    parser.add_argument("--rules", type=Path, default=None, help="Alert rules JSON file")
    parser.add_argument("--now", type=datetime.fromisoformat, default=None, help="Report time (ISO 8601)")
    parser.add_argument("--limit", type=int, default=10, help="Max endpoints listed")
    args = parser.parse_args(argv)

    try:
        events, skipped = ingest_events(args.events, format=args.format)
        rules = load_rules(args.rules) if args.rules else []
        report = build_report(
            events,
            period=args.period,
            metric=args.metric,
            now=args.now,
            rules=rules,
            endpoint_limit=args.limit,
        )
    except PulseError as exc:
        logger.error("Report failed: %s", exc)
        return 1

    report["events"] = {"loaded": len(events), "skipped": skipped}
    json.dump(report, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Telemetry ingestion from event files.

Supports JSON (array, single object or NDJSON) and CSV event exports.
Malformed or invalid rows are logged and counted as skipped; they never abort
a load. Valid rows are returned as validated ApiEvent objects.

Design:
- Format detection from the file extension, or explicit format
- Iterator-based sources for large files
- Raw rows carry a _metadata dict (source, line/index) for diagnostics
- Rows that cannot become an event dict at all (bad JSON, non-objects,
  blank CSV rows) are yielded as rejected rows: only _metadata, with an
  "error" key, so parse_events can count them
"""

import csv
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from pydantic import ValidationError

from pulse.core.exceptions import DataValidationError, IngestionError
from pulse.data.schema import ApiEvent

logger = logging.getLogger(__name__)


class BaseEventSource(ABC):
    """
    Abstract base class for event sources.

    Subclasses handle format-specific reading and yield raw dicts.
    """

    def __init__(self, filepath: Union[str, Path], encoding: str = "utf-8"):
        """
        Args:
            filepath: Path to the events file
            encoding: File encoding (default utf-8)

        Raises:
            IngestionError: If the file doesn't exist
        """
        self.filepath = Path(filepath)
        self.encoding = encoding

        if not self.filepath.exists():
            raise IngestionError(f"Events file not found: {self.filepath}")

    @abstractmethod
    def ingest(self) -> Iterator[Dict[str, Any]]:
        """Yield one raw dict per event."""
        pass


def rejected_row(metadata: Dict[str, Any], reason: str) -> Dict[str, Any]:
    """Placeholder for a row that could not be read as an event dict."""
    return {"_metadata": dict(metadata, error=reason)}


class JSONEventSource(BaseEventSource):
    """
    Reads events from a JSON array, an {"events": [...]} batch, a single
    event object, or NDJSON.

    Example NDJSON:
        {"method": "GET", "path": "/users", "statusCode": 200, "responseTimeMs": 45}
        {"method": "POST", "path": "/orders", "statusCode": 500, "responseTimeMs": 812}
    """

    def ingest(self) -> Iterator[Dict[str, Any]]:
        try:
            with open(self.filepath, "r", encoding=self.encoding) as f:
                content = f.read().lstrip("\ufeff").strip()
        except OSError as e:
            logger.error(f"Error reading events file {self.filepath}: {e}")
            raise IngestionError(f"Failed to read events: {e}") from e

        rows = self._document_rows(content)
        if rows is not None:
            for idx, row in enumerate(rows):
                metadata = {"source": str(self.filepath), "index": idx, "format": "json"}
                if isinstance(row, dict):
                    row["_metadata"] = metadata
                    yield row
                else:
                    logger.warning(f"Non-object event at index {idx}: {type(row).__name__}")
                    yield rejected_row(metadata, "not an object")
            return

        for line_num, line in enumerate(content.split("\n"), start=1):
            line = line.strip()
            if not line:
                continue
            metadata = {"source": str(self.filepath), "line_number": line_num, "format": "ndjson"}
            try:
                row = json.loads(line)
            except json.JSONDecodeError:
                logger.warning(f"Malformed JSON at line {line_num}: {line[:100]}")
                yield rejected_row(metadata, "malformed JSON")
                continue
            if not isinstance(row, dict):
                logger.warning(f"NDJSON line {line_num} is not an object: {type(row).__name__}")
                yield rejected_row(metadata, "not an object")
                continue
            row["_metadata"] = metadata
            yield row

    @staticmethod
    def _document_rows(content: str) -> Optional[List[Any]]:
        """
        Rows of a whole-file JSON document; None for NDJSON.

        An array is a list of events, {"events": [...]} is a batch, and any
        other single object (compact or pretty-printed) is one event.
        """
        if content.startswith("["):
            try:
                document = json.loads(content)
            except json.JSONDecodeError as e:
                if _is_json(content.split("\n", 1)[0]):
                    return None  # NDJSON whose first line is an array
                raise IngestionError(f"Invalid JSON array: {e}") from e
            return document

        if content.startswith("{"):
            try:
                document = json.loads(content)
            except json.JSONDecodeError:
                return None  # several objects, one per line
            if isinstance(document.get("events"), list):
                return document["events"]
            return [document]
        return None


def _is_json(text: str) -> bool:
    try:
        json.loads(text)
    except json.JSONDecodeError:
        return False
    return True


class CSVEventSource(BaseEventSource):
    """
    Reads events from CSV with a header row.

    Example:
        timestamp,method,path,status_code,response_time_ms
        2025-02-07T10:30:45Z,GET,/users,200,45

    Empty cells are treated as missing so optional fields take their defaults.
    """

    def __init__(
        self,
        filepath: Union[str, Path],
        encoding: str = "utf-8",
        delimiter: str = ","
    ):
        super().__init__(filepath, encoding)
        self.delimiter = delimiter

    def ingest(self) -> Iterator[Dict[str, Any]]:
        try:
            with open(self.filepath, "r", encoding=self.encoding, newline="") as f:
                reader = csv.DictReader(f, delimiter=self.delimiter)
                if reader.fieldnames is None:
                    raise IngestionError("CSV file is empty")
                reader.fieldnames = [name.lstrip("\ufeff") for name in reader.fieldnames]

                for line_num, row in enumerate(reader, start=2):  # row 1 is the header
                    cleaned = {
                        key: value for key, value in row.items()
                        if key is not None and value not in (None, "")
                    }
                    metadata = {"source": str(self.filepath), "line_number": line_num, "format": "csv"}
                    if not cleaned:
                        logger.warning(f"Empty row at line {line_num}")
                        yield rejected_row(metadata, "empty row")
                        continue
                    cleaned["_metadata"] = metadata
                    yield cleaned
        except IngestionError:
            raise
        except (OSError, csv.Error) as e:
            logger.error(f"Error reading CSV events file {self.filepath}: {e}")
            raise IngestionError(f"Failed to read CSV events: {e}") from e


def ingest_raw_events(
    filepath: Union[str, Path],
    format: str = "auto"
) -> Iterator[Dict[str, Any]]:
    """
    Yield raw event dicts from a file.

    Args:
        filepath: Path to the events file
        format: "json", "csv", or "auto" (detect from extension; default json)

    Raises:
        IngestionError: If the file is missing or the format is unsupported
    """
    filepath = Path(filepath)

    if format == "auto":
        format = "csv" if filepath.suffix.lower() == ".csv" else "json"

    if format == "json":
        source = JSONEventSource(filepath)
    elif format == "csv":
        source = CSVEventSource(filepath)
    else:
        raise IngestionError(f"Unknown format: {format}")

    yield from source.ingest()


def parse_event(raw: Dict[str, Any]) -> ApiEvent:
    """
    Validate one raw dict into an ApiEvent.

    Raises:
        DataValidationError: If the row fails validation
    """
    data = {k: v for k, v in raw.items() if k != "_metadata"}
    try:
        return ApiEvent.model_validate(data)
    except ValidationError as e:
        raise DataValidationError(str(e)) from e


def parse_events(raw_events: Iterable[Dict[str, Any]]) -> Tuple[List[ApiEvent], int]:
    """
    Validate raw dicts, skipping invalid ones.

    Rejected rows from a source (see rejected_row) count as skipped
    without being validated; the source already logged why.

    Returns:
        (events, skipped_count)
    """
    events: List[ApiEvent] = []
    skipped = 0
    for raw in raw_events:
        if "error" in raw.get("_metadata", {}):
            skipped += 1
            continue
        try:
            events.append(parse_event(raw))
        except DataValidationError as e:
            skipped += 1
            logger.warning("Skipping invalid event %s: %s", raw.get("_metadata", {}), e)
    return events, skipped


def ingest_events(
    filepath: Union[str, Path],
    format: str = "auto"
) -> Tuple[List[ApiEvent], int]:
    """
    Load and validate all events from a file.

    Returns:
        (events sorted by timestamp, skipped_count)
    """
    events, skipped = parse_events(ingest_raw_events(filepath, format))
    events.sort(key=lambda e: e.timestamp)
    logger.info("Ingested %d events from %s (%d skipped)", len(events), filepath, skipped)
    return events, skipped

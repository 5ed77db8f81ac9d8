"""Structured JSONL audit log for lineage-changing operations."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

AUDIT_FILE_NAME = "audit.jsonl"


@dataclass(slots=True, frozen=True)
class AuditEvent:
    """One init or update applied to a tracked directory."""

    timestamp: str
    operation: str
    ok: bool
    status: str
    metadata: dict[str, object]


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JsonlAuditLogger:
    """Append-only lineage history stored beside the manifest."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def append(self, event: AuditEvent) -> None:
        """Append one event; the metadata area must already exist."""
        line = json.dumps(asdict(event), sort_keys=True)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(f"{line}\n")

    def events(self, since: str | None = None, limit: int = 50) -> list[AuditEvent]:
        """Return the newest ``limit`` well-formed events at or after ``since``.

        Lines that are not JSON objects with the event fields are skipped, so a
        torn final line from an interrupted append never hides older history.
        """
        if limit < 1 or not self._path.exists():
            return []
        events: list[AuditEvent] = []
        with self._path.open("r", encoding="utf-8") as handle:
            for raw_line in handle:
                event = _parse_event(raw_line)
                if event is None:
                    continue
                if since is not None and event.timestamp < since:
                    continue
                events.append(event)
        return events[-limit:]


def _parse_event(raw_line: str) -> AuditEvent | None:
    stripped = raw_line.strip()
    if not stripped:
        return None
    try:
        obj = json.loads(stripped)
    except json.JSONDecodeError:
        return None
    if not isinstance(obj, dict):
        return None
    timestamp = obj.get("timestamp")
    operation = obj.get("operation")
    ok = obj.get("ok")
    status = obj.get("status")
    metadata = obj.get("metadata")
    if not isinstance(timestamp, str) or not isinstance(operation, str):
        return None
    if not isinstance(ok, bool) or not isinstance(status, str):
        return None
    if not isinstance(metadata, dict):
        return None
    return AuditEvent(
        timestamp=timestamp,
        operation=operation,
        ok=ok,
        status=status,
        metadata=metadata,
    )

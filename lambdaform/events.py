"""
Per-instance NDJSON event log (logs.ndjson) and the status derived from it.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .state import create_instance_dir, get_instance_dir

logger = logging.getLogger(__name__)

LOG_FILE = "logs.ndjson"


class EventTypes:
    DEPLOY_START = "DEPLOY_START"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    NOOP = "NOOP"
    REPLACE = "REPLACE"
    DONE = "DONE"
    ERROR = "ERROR"
    REMOVE_START = "REMOVE_START"
    REMOVE_DONE = "REMOVE_DONE"


STATUS_BY_EVENT = {
    EventTypes.DEPLOY_START: "deploying",
    EventTypes.CREATE: "creating",
    EventTypes.UPDATE: "updating",
    EventTypes.REPLACE: "replacing",
    EventTypes.NOOP: "deployed",
    EventTypes.DONE: "deployed",
    EventTypes.ERROR: "failed",
    EventTypes.REMOVE_START: "removing",
    EventTypes.REMOVE_DONE: "removed",
}


def emit_event(instance: str, event_type: str, data: Dict[str, Any]) -> None:
    """Append one {ts, type, data} record to the instance log."""
    record = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "type": event_type,
        "data": data,
    }
    with open(create_instance_dir(instance) / LOG_FILE, "a") as f:
        f.write(json.dumps(record) + "\n")


def _parse_line(log_path: Path, lineno: int, line: str) -> Optional[Dict[str, Any]]:
    try:
        record = json.loads(line)
    except json.JSONDecodeError:
        logger.warning(f"Skipping malformed event at {log_path}:{lineno}")
        return None
    return record if isinstance(record, dict) else None


def read_events(instance: str) -> list[Dict[str, Any]]:
    """Return the instance's events in write order; unparseable lines are skipped."""
    log_path = get_instance_dir(instance) / LOG_FILE
    if not log_path.exists():
        return []

    with open(log_path, "r") as f:
        parsed = (_parse_line(log_path, n, line) for n, line in enumerate(f, 1) if line.strip())
        return [record for record in parsed if record is not None]


def get_status_from_events(instance: str) -> str:
    """Map the last recorded event to a status word ("unknown" when there is none)."""
    events = read_events(instance)
    if not events:
        return "unknown"
    return STATUS_BY_EVENT.get(events[-1].get("type", ""), "unknown")

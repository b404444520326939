# Copyright 2026. Structured event logging for render and trigger requests.

import enum
import json
import os
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path

SCHEMA_VERSION = 1
EVENTS_FILE = "events.jsonl"


class EventType(str, enum.Enum):
    RENDER_COMPLETED = "render_completed"
    RENDER_FAILED = "render_failed"
    JOB_STARTED = "job_started"
    TRIGGER_REQUESTED = "trigger_requested"
    TRIGGER_COMPLETED = "trigger_completed"
    TRIGGER_DENIED = "trigger_denied"
    TRIGGER_NOT_FOUND = "trigger_not_found"
    TRIGGER_FAILED = "trigger_failed"
    SPEC_RENAMED = "spec_renamed"
    SPEC_REMOVED = "spec_removed"


_WARNING_EVENTS = {
    EventType.TRIGGER_NOT_FOUND, EventType.TRIGGER_FAILED,
}


@dataclass
class Event:
    v: int
    event: str
    ts: str
    view: str
    subsystem: str
    level: str = "info"
    job: str = ""
    upstream: str = ""
    build_id: str = ""
    components: int = 0
    error: str = ""
    old_name: str = ""
    new_name: str = ""


_ALWAYS_KEEP = {"v", "event", "ts", "view", "subsystem", "level"}
_SKIP_VALUES = {"", 0, None}


def _event_to_json(event: Event) -> str:
    d = {}
    for k, val in asdict(event).items():
        if k in _ALWAYS_KEEP or val not in _SKIP_VALUES:
            d[k] = val
    return json.dumps(d, separators=(",", ":"))


def _now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def log_event(state_dir: str, event: Event) -> None:
    if not state_dir:
        return
    path = os.path.join(state_dir, EVENTS_FILE)
    try:
        with open(path, "a") as f:
            f.write(_event_to_json(event) + "\n")
    except OSError:
        pass


def emit(state_dir: str, event_type: EventType, subsystem: str,
         view: str = "", **kwargs) -> None:
    ev = Event(
        v=SCHEMA_VERSION,
        event=event_type.value,
        ts=_now_iso(),
        view=view,
        subsystem=subsystem,
        level="warning" if event_type in _WARNING_EVENTS else "info",
        **kwargs,
    )
    log_event(state_dir, ev)


def read_events(state_dir: Path, limit: int = 20) -> list[dict]:
    path = state_dir / EVENTS_FILE
    if not path.is_file():
        return []
    events: list[dict] = []
    for line in path.read_text().splitlines():
        if not line.strip():
            continue
        try:
            events.append(json.loads(line))
        except json.JSONDecodeError:
            continue
    return events[-limit:] if limit else events


# -- Status command ------------------------------------------------------------

def _summarize_events(events: list[dict]) -> dict:
    summary: dict = {"renders": 0, "render_failures": 0, "triggers": 0,
                     "trigger_failures": 0, "last_error": ""}
    for ev in events:
        kind = ev.get("event", "")
        if kind == EventType.RENDER_COMPLETED.value:
            summary["renders"] += 1
            summary["last_error"] = ""
        elif kind == EventType.RENDER_FAILED.value:
            summary["renders"] += 1
            summary["render_failures"] += 1
            summary["last_error"] = ev.get("error", "")
        elif kind == EventType.TRIGGER_REQUESTED.value:
            summary["triggers"] += 1
        elif kind in (EventType.TRIGGER_FAILED.value,
                      EventType.TRIGGER_NOT_FOUND.value,
                      EventType.TRIGGER_DENIED.value):
            summary["trigger_failures"] += 1
    return summary


def cmd_status(args) -> int:
    limit = getattr(args, "limit", 20)
    warnings_only = getattr(args, "warnings", False)

    state_dir = Path(args.state_dir)
    events = read_events(state_dir, limit=0)
    summary = _summarize_events(events)

    if warnings_only:
        events = [e for e in events if e.get("level") == "warning"]

    summary["events"] = events[-limit:] if limit else events
    print(json.dumps(summary, indent=2))
    return 0

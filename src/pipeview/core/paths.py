# Copyright 2026. State directory layout for pipeline views.

import os
import re
from pathlib import Path


STATE_BASE = Path(os.environ.get(
    "PIPEVIEW_HOME",
    str(Path.home() / ".pipeview"),
))


def _sanitize_view_name(raw: str) -> str:
    name = raw.strip().lower()
    name = re.sub(r"[^a-z0-9-]", "-", name)
    name = re.sub(r"-+", "-", name)
    return name.strip("-")[:50] or "default"


def view_state_dir(view_name: str, base: Path | None = None) -> Path:
    path = (base or STATE_BASE) / "views" / _sanitize_view_name(view_name)
    path.mkdir(parents=True, exist_ok=True)
    return path


def activity_log_path(state_dir: Path) -> str:
    return str(state_dir / "view-activity.log")

# Copyright 2026. Activity logging for pipeline views.

from datetime import datetime, timezone


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%H:%M:%S")


def format_timestamp(millis: int) -> str:
    """Render an epoch-millisecond timestamp the way the dashboard shows it."""
    dt = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


def log_activity(log_path: str, source: str, message: str, level: str = "") -> None:
    if not log_path:
        return
    ts = utc_timestamp()
    if level:
        message = f"{level.upper()} {message}"
    line = f"[{ts}] {source}  {message}\n" if source else f"[{ts}] {message}\n"
    try:
        with open(log_path, "a") as f:
            f.write(line)
    except OSError:
        pass


def log_warning(log_path: str, source: str, message: str) -> None:
    log_activity(log_path, source, message, level="warning")

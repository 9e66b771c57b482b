"""On-disk history of cleaning sessions.

The file holds ``{"sessions": [...]}``; each session is a mapping with a
``timestamp`` (ISO 8601) and a list of per-directory ``details`` (category,
path and bytes freed).
"""

from __future__ import annotations

import json
import logging
from typing import Any

from safeclean.utils import xdg_data_home

log = logging.getLogger(__name__)

_DATA_DIR = xdg_data_home() / "safeclean"

HISTORY_FILE = _DATA_DIR / "history.json"

Session = dict[str, Any]


def _is_session(record: Any) -> bool:
    return (
        isinstance(record, dict)
        and isinstance(record.get("timestamp"), str)
        and isinstance(record.get("details"), list)
    )


def load_history() -> dict[str, Any]:
    """Read the history file. Missing or unreadable files yield no sessions."""
    if not HISTORY_FILE.exists():
        return {"sessions": []}
    try:
        with open(HISTORY_FILE) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        log.exception("Failed to load history file: %s", HISTORY_FILE)
        return {"sessions": []}
    if not isinstance(data, dict) or not isinstance(data.get("sessions"), list):
        log.warning("Ignoring malformed history file: %s", HISTORY_FILE)
        return {"sessions": []}

    sessions = [s for s in data["sessions"] if _is_session(s)]
    if len(sessions) != len(data["sessions"]):
        log.warning("Dropped %d malformed sessions from %s",
                    len(data["sessions"]) - len(sessions), HISTORY_FILE)
    return {**data, "sessions": sessions}


def load_sessions() -> list[Session]:
    """All recorded sessions, oldest first."""
    return load_history()["sessions"]


def save_history(data: dict[str, Any]) -> None:
    """Write the history data to disk, creating the data directory on demand."""
    try:
        _DATA_DIR.mkdir(parents=True, exist_ok=True)
        with open(HISTORY_FILE, "w") as f:
            json.dump(data, f, indent=2)
    except OSError:
        log.exception("Failed to save history file: %s", HISTORY_FILE)


def append_session(session: Session) -> None:
    history = load_history()
    history["sessions"].append(session)
    save_history(history)
    log.debug("Recorded session %s (%d directories)", session["timestamp"], len(session["details"]))

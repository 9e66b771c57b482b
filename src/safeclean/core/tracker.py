"""Tracks freed space across sessions."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from safeclean.models.clean_result import CleanResult
from safeclean.storage import Session, append_session, load_sessions

log = logging.getLogger(__name__)


class Tracker:
    """Tracks and persists cleaning statistics."""

    def __init__(self) -> None:
        self._session_results: list[CleanResult] = []

    def record(self, result: CleanResult) -> None:
        """Record a cleaning result for the current session."""
        self._session_results.append(result)

    def get_last_clean_time(self) -> str | None:
        """Return ISO timestamp of the most recent cleaning session, or None."""
        sessions = load_sessions()
        return sessions[-1]["timestamp"] if sessions else None

    def save_session(self) -> None:
        """Persist the current session to history.

        Sessions in which nothing was deleted are not recorded.
        """
        session_entry = self._build_session_entry()
        if not session_entry["details"]:
            self._session_results.clear()
            return

        append_session(session_entry)

        log.info(
            "Saved session: %d bytes freed from %d directories",
            _session_bytes(session_entry),
            len(session_entry["details"]),
        )
        self._session_results.clear()

    def get_stats(self, period: str = "all") -> dict[str, Any]:
        """Get aggregated statistics for a time period.

        Args:
            period: One of 'today', 'week', 'month', 'all'.
        """
        all_sessions = load_sessions()

        match period:
            case "today":
                cutoff = _start_of_today()
            case "week":
                cutoff = _start_of_today() - timedelta(days=7)
            case "month":
                cutoff = _start_of_today() - timedelta(days=30)
            case _:
                cutoff = None

        if cutoff is not None:
            sessions = [s for s in all_sessions if datetime.fromisoformat(s["timestamp"]) >= cutoff]
        else:
            sessions = all_sessions

        return {
            "period": period,
            "bytes_freed": sum(_session_bytes(s) for s in sessions),
            "dirs_removed": sum(len(s.get("details", [])) for s in sessions),
            "session_count": len(sessions),
            "lifetime_bytes_freed": sum(_session_bytes(s) for s in all_sessions),
            "per_category": self._aggregate_category_stats(sessions),
        }

    def _build_session_entry(self) -> Session:
        """Build a session record from current results."""
        details = [
            {
                "category": entry.category.value,
                "path": str(entry.path),
                "bytes_freed": entry.size_bytes,
            }
            for result in self._session_results
            for entry in result.deleted
        ]
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "details": details,
        }

    @staticmethod
    def _aggregate_category_stats(sessions: list[Session]) -> dict[str, dict[str, int]]:
        """Aggregate per-category statistics across sessions."""
        totals: dict[str, dict[str, int]] = {}
        for session in sessions:
            for detail in session.get("details", []):
                cat = detail["category"]
                if cat not in totals:
                    totals[cat] = {"bytes_freed": 0, "dirs_removed": 0}
                totals[cat]["bytes_freed"] += detail.get("bytes_freed", 0)
                totals[cat]["dirs_removed"] += 1
        return totals


def _session_bytes(session: dict[str, Any]) -> int:
    """Derive total bytes freed from a session's details."""
    return sum(d.get("bytes_freed", 0) for d in session.get("details", []))


def _start_of_today() -> datetime:
    """Return the start of the current UTC day."""
    now = datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)

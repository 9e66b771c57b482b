"""Cleaning result dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field

from safeclean.models.found_entry import FoundEntry


@dataclass(slots=True)
class CleanResult:
    """Outcome of deleting a batch of directories."""

    deleted: list[FoundEntry] = field(default_factory=list)
    failed: list[tuple[FoundEntry, OSError]] = field(default_factory=list)

    @property
    def total_cleaned(self) -> int:
        """Bytes reclaimed by the directories that were actually removed."""
        return sum(entry.size_bytes for entry in self.deleted)

    @property
    def errors(self) -> list[str]:
        return [f"{entry.path}: {exc}" for entry, exc in self.failed]

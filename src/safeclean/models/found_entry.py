"""Scan result dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from safeclean.models.category import Category


@dataclass(frozen=True, slots=True)
class FoundEntry:
    """A disposable directory found by the scanner."""

    path: Path
    category: Category
    size_bytes: int

    @property
    def size_human(self) -> str:
        from safeclean.utils import bytes_to_human

        return bytes_to_human(self.size_bytes)

"""Deletion of selected directories."""

from __future__ import annotations

import logging
import shutil
from typing import Callable, Iterable

from safeclean.models.clean_result import CleanResult
from safeclean.models.found_entry import FoundEntry

log = logging.getLogger(__name__)

ProgressCallback = Callable[[FoundEntry, OSError | None], None]


def clean(entries: Iterable[FoundEntry], on_progress: ProgressCallback | None = None) -> CleanResult:
    """Recursively delete each entry's directory.

    A failure is recorded alongside its cause and the batch carries on
    with the remaining entries.

    Args:
        entries: Directories to remove.
        on_progress: Optional callback fired after each attempt with the
            entry and the error, if any.
    """
    result = CleanResult()

    for entry in entries:
        try:
            shutil.rmtree(entry.path)
        except OSError as exc:
            log.warning("Failed to delete %s: %s", entry.path, exc)
            result.failed.append((entry, exc))
            if on_progress:
                on_progress(entry, exc)
            continue
        log.debug("Deleted %s (%d bytes)", entry.path, entry.size_bytes)
        result.deleted.append(entry)
        if on_progress:
            on_progress(entry, None)

    log.info("Deleted %d directories, %d failed", len(result.deleted), len(result.failed))
    return result

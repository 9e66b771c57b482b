"""Recursive scan for disposable build and dependency directories."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterable

from safeclean.core.registry import MatchRule, first_match, rules_for
from safeclean.models.category import Category
from safeclean.models.found_entry import FoundEntry
from safeclean.utils import dir_size

log = logging.getLogger(__name__)

FoundCallback = Callable[[FoundEntry], None]


def _is_pruned(path: Path, pruned: set[Path]) -> bool:
    """Whether *path* is a confirmed match or lies beneath one."""
    if path in pruned:
        return True
    return any(parent in pruned for parent in path.parents)


def _child_dirs(path: Path) -> list[Path]:
    """Immediate subdirectories of *path* in name order, symlinks excluded."""
    children: list[Path] = []
    try:
        with os.scandir(path) as it:
            for entry in it:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        children.append(Path(entry.path))
                except OSError:
                    log.debug("Cannot stat: %s", entry.path)
    except OSError:
        log.debug("Cannot read directory: %s", path)
    children.sort(key=lambda p: p.name)
    return children


def scan(
    root: Path | str,
    enabled_categories: Iterable[Category] | None = None,
    on_found: FoundCallback | None = None,
) -> list[FoundEntry]:
    """Find disposable directories under *root*.

    Walks the tree once, pre-order. When a directory matches a rule its
    size is computed and nothing beneath it is visited again, so no
    reported path is ever an ancestor of another.

    Args:
        root: Directory to scan. It is itself a candidate.
        enabled_categories: Categories to look for. None or empty means all.
        on_found: Optional callback fired as each match is confirmed.

    Returns:
        Matches sorted by size, largest first.
    """
    rules: list[MatchRule] = rules_for(enabled_categories)
    found: list[FoundEntry] = []
    pruned: set[Path] = set()
    visited = 0

    # abspath also collapses "..", which Path.absolute() keeps.
    stack: list[Path] = [Path(os.path.abspath(root))]
    while stack:
        path = stack.pop()
        if _is_pruned(path, pruned):
            continue
        visited += 1

        rule = first_match(path, rules)
        if rule is not None:
            entry = FoundEntry(path=path, category=rule.category, size_bytes=dir_size(path))
            log.debug("Matched %s as %s (%d bytes)", path, rule.category.value, entry.size_bytes)
            found.append(entry)
            pruned.add(path)
            if on_found:
                on_found(entry)
            continue

        # Reversed so the stack pops children in name order.
        stack.extend(reversed(_child_dirs(path)))

    found.sort(key=lambda e: e.size_bytes, reverse=True)
    log.info("Scanned %d directories under %s, found %d matches", visited, root, len(found))
    return found


def total_size(entries: Iterable[FoundEntry]) -> int:
    """Sum of the sizes of *entries*."""
    return sum(entry.size_bytes for entry in entries)

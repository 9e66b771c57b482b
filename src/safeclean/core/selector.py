"""Interactive grouped checklist for choosing which directories to delete."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, NamedTuple

import click

from safeclean.models.category import Category
from safeclean.models.found_entry import FoundEntry
from safeclean.utils import bytes_to_human

log = logging.getLogger(__name__)

KeyReader = Callable[[], str]
FrameWriter = Callable[[str], None]

# Raw sequences as returned by click.getchar() on POSIX terminals and Windows consoles.
KEYS_UP = frozenset({"\x1b[A", "\x1bOA", "\xe0H", "\x00H", "k"})
KEYS_DOWN = frozenset({"\x1b[B", "\x1bOB", "\xe0P", "\x00P", "j"})
KEYS_TOGGLE = frozenset({" "})
KEYS_COLLAPSE = frozenset({"\t"})
KEYS_CONFIRM = frozenset({"\r", "\n"})
KEYS_CANCEL = frozenset({"\x1b", "q"})

# click.getchar() may hand back several keys at once (autorepeat, paste).
_KEY_TOKEN = re.compile(r"\x1b\[[0-9;]*[A-Za-z~]|\x1bO[A-Za-z]|[\xe0\x00].|.", re.S)
_INCOMPLETE_SEQUENCES = ("\x1b[", "\x1bO")

_CLEAR_SCREEN = "\x1b[2J\x1b[H"
_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"


class GroupState(Enum):
    """Tri-state selection indicator of a group header."""

    ALL = "all"
    NONE = "none"
    MIXED = "mixed"


class SelectorAction(Enum):
    """What the input loop should do after a key press."""

    CONTINUE = "continue"
    CONFIRM = "confirm"
    CANCEL = "cancel"


@dataclass(slots=True)
class SelectableItem:
    entry: FoundEntry
    selected: bool = True


@dataclass(slots=True)
class Group:
    """All matches of one category, shown under a collapsible header."""

    category: Category
    items: list[SelectableItem] = field(default_factory=list)
    collapsed: bool = False

    @property
    def total_bytes(self) -> int:
        return sum(item.entry.size_bytes for item in self.items)

    @property
    def all_selected(self) -> bool:
        return all(item.selected for item in self.items)

    @property
    def none_selected(self) -> bool:
        return not any(item.selected for item in self.items)

    @property
    def state(self) -> GroupState:
        if self.all_selected:
            return GroupState.ALL
        if self.none_selected:
            return GroupState.NONE
        return GroupState.MIXED

    @property
    def line_count(self) -> int:
        """Lines this group occupies: the header plus any visible items."""
        return 1 if self.collapsed else 1 + len(self.items)

    def toggle_all(self) -> None:
        """Select everything, or deselect everything if it is all selected already."""
        new_state = not self.all_selected
        for item in self.items:
            item.selected = new_state


class CursorPosition(NamedTuple):
    """Group index, plus the item index when the line is not a header."""

    group: int
    item: int | None = None

    @property
    def is_header(self) -> bool:
        return self.item is None


def visible_line_count(groups: list[Group]) -> int:
    return sum(group.line_count for group in groups)


def locate(groups: list[Group], index: int) -> CursorPosition:
    """Map a visible line index to the group header or item drawn there."""
    if index < 0:
        raise IndexError(f"Line {index} out of range")
    line = 0
    for gi, group in enumerate(groups):
        if line == index:
            return CursorPosition(gi)
        line += 1
        if not group.collapsed:
            if index < line + len(group.items):
                return CursorPosition(gi, index - line)
            line += len(group.items)
    raise IndexError(f"Line {index} out of range ({line} visible lines)")


def split_keys(chunk: str) -> tuple[list[str], str]:
    """Split raw terminal input into single key presses.

    Returns the keys plus a trailing escape-sequence prefix that has not
    been completed yet; it should be prepended to the next read.
    """
    pending = ""
    for prefix in _INCOMPLETE_SEQUENCES:
        if chunk.endswith(prefix):
            chunk, pending = chunk[: -len(prefix)], prefix
            break
    return _KEY_TOKEN.findall(chunk), pending


def _draw_frame(frame: str) -> None:
    click.echo(_CLEAR_SCREEN + frame, err=True)


class GroupedSelector:
    """Checklist of found directories grouped by category.

    Every item starts selected and every group expanded. The cursor is a
    plain line index; which header or item it points at is always derived
    from the current collapse state through :func:`locate`.
    """

    def __init__(self, entries: list[FoundEntry]) -> None:
        if not entries:
            raise ValueError("GroupedSelector needs at least one entry")

        by_category: dict[Category, list[FoundEntry]] = {}
        for entry in entries:
            by_category.setdefault(entry.category, []).append(entry)

        self.groups: list[Group] = [
            Group(category, [SelectableItem(entry) for entry in by_category[category]])
            for category in Category.ordered()
            if category in by_category
        ]
        self.cursor = 0
        self._path_width = max(len(str(entry.path)) for entry in entries)

    # -- State --

    @property
    def total_lines(self) -> int:
        return visible_line_count(self.groups)

    @property
    def position(self) -> CursorPosition:
        return locate(self.groups, self.cursor)

    def selected_entries(self) -> list[FoundEntry]:
        """Selected entries in category order, each group in its original order."""
        return [item.entry for group in self.groups for item in group.items if item.selected]

    # -- Actions --

    def move_up(self) -> None:
        if self.cursor > 0:
            self.cursor -= 1

    def move_down(self) -> None:
        if self.cursor + 1 < self.total_lines:
            self.cursor += 1

    def toggle_current(self) -> None:
        pos = self.position
        group = self.groups[pos.group]
        if pos.is_header:
            group.toggle_all()
        else:
            item = group.items[pos.item]
            item.selected = not item.selected

    def toggle_collapse(self) -> None:
        pos = self.position
        if not pos.is_header:
            return
        group = self.groups[pos.group]
        group.collapsed = not group.collapsed
        self._clamp_cursor()

    def _clamp_cursor(self) -> None:
        self.cursor = max(0, min(self.cursor, self.total_lines - 1))

    def handle_key(self, key: str) -> SelectorAction:
        """Apply one key press to the selector state."""
        if key in KEYS_UP:
            self.move_up()
        elif key in KEYS_DOWN:
            self.move_down()
        elif key in KEYS_TOGGLE:
            self.toggle_current()
        elif key in KEYS_COLLAPSE:
            self.toggle_collapse()
        elif key in KEYS_CONFIRM:
            return SelectorAction.CONFIRM
        elif key in KEYS_CANCEL:
            return SelectorAction.CANCEL
        return SelectorAction.CONTINUE

    # -- Rendering --

    def render(self) -> str:
        lines: list[str] = []
        line_no = 0

        for group in self.groups:
            lines.append(self._render_header(group, highlighted=line_no == self.cursor))
            line_no += 1
            if group.collapsed:
                continue
            for item in group.items:
                lines.append(self._render_item(item, highlighted=line_no == self.cursor))
                line_no += 1

        selected = self.selected_entries()
        lines.append("")
        lines.append(
            f"Selected {len(selected)} of {sum(len(g.items) for g in self.groups)} "
            f"({bytes_to_human(sum(e.size_bytes for e in selected))})"
        )
        lines.append(
            f"{click.style('↑↓', fg='cyan')} navigate  "
            f"{click.style('Space', fg='cyan')} toggle  "
            f"{click.style('Tab', fg='cyan')} expand/collapse  "
            f"{click.style('Enter', fg='cyan')} confirm  "
            f"{click.style('Esc', fg='cyan')} cancel"
        )
        return "\n".join(lines)

    def _render_header(self, group: Group, highlighted: bool) -> str:
        state = group.state
        box = {GroupState.ALL: "[✓]", GroupState.NONE: "[ ]", GroupState.MIXED: "[~]"}[state]
        arrow = "▶" if group.collapsed else "▼"
        text = (
            f"{group.category.display_name} "
            f"({len(group.items)} items, {bytes_to_human(group.total_bytes)})"
        )
        if highlighted:
            return click.style(f"{box} {arrow} {text}", reverse=True)
        if state is GroupState.ALL:
            box = click.style(box, fg="green")
        elif state is GroupState.NONE:
            box = click.style(box, dim=True)
        else:
            box = click.style(box, fg="yellow")
        return f"{box} {arrow} {click.style(text, bold=True)}"

    def _render_item(self, item: SelectableItem, highlighted: bool) -> str:
        box = "[✓]" if item.selected else "[ ]"
        body = f"{str(item.entry.path):<{self._path_width}}  {item.entry.size_human:>10}"
        if highlighted:
            return "  " + click.style(f"{box} {body}", reverse=True)
        box = click.style(box, fg="green") if item.selected else click.style(box, dim=True)
        return f"  {box} {body}"

    # -- Input loop --

    def run(
        self,
        read_key: KeyReader | None = None,
        draw: FrameWriter | None = None,
    ) -> list[FoundEntry] | None:
        """Run the interactive loop until the operator confirms or cancels.

        Args:
            read_key: Blocking reader returning one or more keys. Defaults to
                ``click.getchar``.
            draw: Receives each rendered frame. Defaults to redrawing stderr.

        Returns:
            The selected entries on confirm, or None when cancelled.
        """
        owns_terminal = draw is None
        read_key = read_key or click.getchar
        draw = draw or _draw_frame

        if owns_terminal:
            click.echo(_HIDE_CURSOR, err=True, nl=False)
        try:
            draw(self.render())
            pending = ""
            while True:
                try:
                    chunk = read_key()
                except (KeyboardInterrupt, EOFError):
                    log.debug("Selection interrupted")
                    return None

                keys, pending = split_keys(pending + chunk)
                for key in keys:
                    action = self.handle_key(key)
                    if action is SelectorAction.CONFIRM:
                        return self.selected_entries()
                    if action is SelectorAction.CANCEL:
                        log.debug("Selection cancelled")
                        return None
                    draw(self.render())
        finally:
            if owns_terminal:
                click.echo(_SHOW_CURSOR + _CLEAR_SCREEN, err=True, nl=False)

"""Tests for the grouped interactive selector."""

from __future__ import annotations

from pathlib import Path

import click
import pytest

from safeclean.core.selector import (
    CursorPosition,
    Group,
    GroupedSelector,
    GroupState,
    SelectableItem,
    SelectorAction,
    locate,
    split_keys,
)
from safeclean.models.category import Category
from safeclean.models.found_entry import FoundEntry

UP = "\x1b[A"
DOWN = "\x1b[B"
SPACE = " "
TAB = "\t"
ENTER = "\r"
ESC = "\x1b"


def _entry(name: str, category: Category, size: int) -> FoundEntry:
    return FoundEntry(path=Path("/work") / name, category=category, size_bytes=size)


@pytest.fixture
def entries():
    # Scanner output order: size descending, categories interleaved.
    return [
        _entry("web/node_modules", Category.NODE, 900),
        _entry("cli/target", Category.RUST, 800),
        _entry("api/node_modules", Category.NODE, 700),
        _entry("tool/.venv", Category.PYTHON, 600),
        _entry("lib/target", Category.RUST, 500),
    ]


@pytest.fixture
def selector(entries):
    return GroupedSelector(entries)


def _keys(*keys):
    it = iter(keys)
    return lambda: next(it)


def _run(selector, *keys):
    frames = []
    result = selector.run(read_key=_keys(*keys), draw=frames.append)
    return result, frames


class TestConstruction:
    def test_groups_follow_category_order(self, selector):
        assert [g.category for g in selector.groups] == [Category.RUST, Category.NODE, Category.PYTHON]

    def test_items_keep_input_order(self, selector):
        rust, node, _ = selector.groups
        assert [i.entry.size_bytes for i in rust.items] == [800, 500]
        assert [i.entry.size_bytes for i in node.items] == [900, 700]

    def test_defaults(self, selector):
        assert selector.cursor == 0
        assert all(not g.collapsed for g in selector.groups)
        assert all(i.selected for g in selector.groups for i in g.items)

    def test_total_lines(self, selector):
        assert selector.total_lines == 3 + 5

    def test_empty_categories_are_omitted(self):
        sel = GroupedSelector([_entry("x/.next", Category.NEXT, 1)])
        assert [g.category for g in sel.groups] == [Category.NEXT]

    def test_empty_input_rejected(self):
        with pytest.raises(ValueError):
            GroupedSelector([])


class TestGroup:
    def _group(self, *flags):
        items = [SelectableItem(_entry(f"d{i}", Category.RUST, 1), selected=f) for i, f in enumerate(flags)]
        return Group(Category.RUST, items)

    def test_state(self):
        assert self._group(True, True).state is GroupState.ALL
        assert self._group(False, False).state is GroupState.NONE
        assert self._group(True, False).state is GroupState.MIXED

    def test_toggle_all_from_mixed_selects_everything(self):
        group = self._group(True, False, True)
        group.toggle_all()
        assert all(i.selected for i in group.items)

    def test_toggle_all_twice_is_identity(self):
        group = self._group(True, True)
        group.toggle_all()
        assert group.state is GroupState.NONE
        group.toggle_all()
        assert group.state is GroupState.ALL

    def test_line_count(self):
        group = self._group(True, True, True)
        assert group.line_count == 4
        group.collapsed = True
        assert group.line_count == 1


class TestLocate:
    def test_walks_headers_and_items(self, selector):
        positions = [locate(selector.groups, i) for i in range(selector.total_lines)]
        assert positions == [
            CursorPosition(0), CursorPosition(0, 0), CursorPosition(0, 1),
            CursorPosition(1), CursorPosition(1, 0), CursorPosition(1, 1),
            CursorPosition(2), CursorPosition(2, 0),
        ]

    def test_skips_collapsed_items(self, selector):
        selector.groups[0].collapsed = True
        assert locate(selector.groups, 1) == CursorPosition(1)
        assert locate(selector.groups, 2) == CursorPosition(1, 0)

    def test_out_of_range(self, selector):
        with pytest.raises(IndexError):
            locate(selector.groups, selector.total_lines)
        with pytest.raises(IndexError):
            locate(selector.groups, -1)


class TestNavigation:
    def test_up_clamps_at_zero(self, selector):
        selector.handle_key(UP)
        selector.handle_key("k")
        assert selector.cursor == 0

    def test_down_clamps_at_last_line(self, selector):
        for _ in range(20):
            selector.handle_key(DOWN)
        assert selector.cursor == selector.total_lines - 1
        selector.handle_key("j")
        assert selector.cursor == selector.total_lines - 1

    def test_alternate_keys(self, selector):
        selector.handle_key("j")
        selector.handle_key("j")
        selector.handle_key("k")
        assert selector.cursor == 1

    def test_down_skips_collapsed_group_items(self, selector):
        selector.handle_key(TAB)
        selector.handle_key(DOWN)
        assert selector.position == CursorPosition(1)

    def test_unknown_keys_are_ignored(self, selector):
        before = [(i.selected) for g in selector.groups for i in g.items]
        assert selector.handle_key("x") is SelectorAction.CONTINUE
        assert selector.cursor == 0
        assert [(i.selected) for g in selector.groups for i in g.items] == before


class TestToggling:
    def test_toggle_item(self, selector):
        selector.handle_key(DOWN)
        selector.handle_key(SPACE)
        rust = selector.groups[0]
        assert [i.selected for i in rust.items] == [False, True]
        assert rust.state is GroupState.MIXED

    def test_toggle_header_on_mixed_selects_all(self, selector):
        selector.handle_key(DOWN)
        selector.handle_key(SPACE)
        selector.handle_key(UP)
        selector.handle_key(SPACE)
        assert selector.groups[0].state is GroupState.ALL

    def test_toggle_header_twice(self, selector):
        selector.handle_key(SPACE)
        assert selector.groups[0].state is GroupState.NONE
        selector.handle_key(SPACE)
        assert selector.groups[0].state is GroupState.ALL

    def test_toggle_header_leaves_other_groups(self, selector):
        selector.handle_key(SPACE)
        assert selector.groups[1].state is GroupState.ALL
        assert selector.groups[2].state is GroupState.ALL


class TestCollapsing:
    def test_collapse_removes_item_lines(self, selector):
        before = selector.total_lines
        selector.handle_key(TAB)
        assert selector.total_lines == before - 2
        selector.handle_key(TAB)
        assert selector.total_lines == before

    def test_collapse_keeps_selection(self, selector):
        selector.handle_key(DOWN)
        selector.handle_key(SPACE)
        selector.handle_key(UP)
        selector.handle_key(TAB)
        assert [i.selected for i in selector.groups[0].items] == [False, True]

    def test_collapse_on_item_line_does_nothing(self, selector):
        selector.handle_key(DOWN)
        selector.handle_key(TAB)
        assert not selector.groups[0].collapsed
        assert selector.cursor == 1

    def test_cursor_stays_in_range_after_collapse(self, selector):
        for _ in range(6):
            selector.handle_key(DOWN)
        assert selector.position == CursorPosition(2)
        selector.handle_key(TAB)
        assert selector.cursor == selector.total_lines - 1
        selector.handle_key(DOWN)
        assert selector.position == CursorPosition(2)

    def test_collapsed_group_is_still_returned(self, selector):
        selector.handle_key(TAB)
        result, _ = _run(selector, ENTER)
        assert len(result) == 5


class TestRun:
    def test_confirm_without_changes_returns_everything(self, selector, entries):
        result, frames = _run(selector, ENTER)
        assert sorted(e.path for e in result) == sorted(e.path for e in entries)
        assert len(frames) == 1

    def test_confirm_order_is_category_then_size(self, selector):
        result, _ = _run(selector, "\n")
        assert [str(e.path) for e in result] == [
            "/work/cli/target", "/work/lib/target",
            "/work/web/node_modules", "/work/api/node_modules",
            "/work/tool/.venv",
        ]

    def test_deselect_group_then_confirm(self, selector):
        result, frames = _run(selector, DOWN, DOWN, DOWN, SPACE, ENTER)
        assert {e.category for e in result} == {Category.RUST, Category.PYTHON}
        assert len(frames) == 5

    def test_confirm_with_nothing_selected(self):
        sel = GroupedSelector([_entry("a/.venv", Category.PYTHON, 1)])
        result, _ = _run(sel, SPACE, ENTER)
        assert result == []

    @pytest.mark.parametrize("cancel", [ESC, "q"])
    def test_cancel_returns_none(self, selector, cancel):
        result, _ = _run(selector, SPACE, DOWN, TAB, cancel)
        assert result is None

    @pytest.mark.parametrize("exc", [KeyboardInterrupt, EOFError])
    def test_interrupt_cancels(self, selector, exc):
        def read_key():
            raise exc

        assert selector.run(read_key=read_key, draw=lambda frame: None) is None

    def test_several_keys_in_one_read(self, selector):
        # Autorepeat and paste deliver multiple keys in a single getchar() chunk.
        result, frames = _run(selector, DOWN + DOWN, SPACE, ENTER)
        assert Path("/work/lib/target") not in {e.path for e in result}
        assert len(result) == 4
        assert len(frames) == 4

    def test_whole_session_in_one_read(self, selector):
        result, _ = _run(selector, DOWN + DOWN + SPACE + ENTER)
        assert [str(e.path) for e in result][:1] == ["/work/cli/target"]
        assert len(result) == 4

    def test_unknown_sequence_does_not_cancel(self, selector):
        result, _ = _run(selector, "\x1b[3~", ENTER)
        assert len(result) == 5

    def test_keys_after_cancel_are_ignored(self, selector):
        assert _run(selector, "jq" + SPACE + ENTER)[0] is None

    @pytest.mark.parametrize("prefix", ["\x1b[", "\x1bO"])
    def test_arrow_split_across_reads(self, selector, prefix):
        result, _ = _run(selector, prefix, "B", SPACE, ENTER)
        assert result is not None
        assert Path("/work/cli/target") not in {e.path for e in result}


class TestSplitKeys:
    def test_mixed_chunk(self):
        assert split_keys("\x1b[B\x1bOAk \r") == (["\x1b[B", "\x1bOA", "k", " ", "\r"], "")

    def test_other_escape_sequences_stay_whole(self):
        # Delete and Shift-Tab must not be read as Esc followed by junk.
        assert split_keys("\x1b[3~\x1b[Z") == (["\x1b[3~", "\x1b[Z"], "")

    def test_windows_scan_codes(self):
        assert split_keys("\xe0P\x00H") == (["\xe0P", "\x00H"], "")

    def test_unfinished_sequence_is_held_back(self):
        assert split_keys("j\x1b[") == (["j"], "\x1b[")

    def test_lone_escape_is_a_key(self):
        assert split_keys(ESC) == ([ESC], "")


class TestRender:
    def test_lists_headers_items_and_help(self, selector):
        text = click.unstyle(selector.render())
        lines = text.splitlines()
        assert lines[0] == "[✓] ▼ Rust (2 items, 1.3 KB)"
        assert lines[1].startswith("  [✓] /work/cli/target")
        assert lines[1].endswith("800 B")
        assert "navigate" in lines[-1]
        assert "Selected 5 of 5" in text

    def test_tri_state_and_collapse_markers(self, selector):
        selector.handle_key(DOWN)
        selector.handle_key(SPACE)
        selector.handle_key(DOWN)
        selector.handle_key(DOWN)
        selector.handle_key(SPACE)
        selector.handle_key(TAB)
        lines = click.unstyle(selector.render()).splitlines()
        assert lines[0].startswith("[~] ▼ Rust")
        assert lines[3].startswith("[ ] ▶ Node.js")
        assert lines[4].startswith("[✓] ▼ Python")

    def test_highlights_only_cursor_line(self, selector):
        selector.handle_key(DOWN)
        lines = selector.render().splitlines()
        reversed_lines = [i for i, line in enumerate(lines) if "\x1b[7m" in line]
        assert reversed_lines == [1]

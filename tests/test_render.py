"""Tests for procexplorer.render against a fake curses window."""

from __future__ import annotations

import curses

import pytest

from conftest import FakeWindow
from procexplorer.render import (
    FOOTER_LEGEND,
    TABLE_HEADER,
    TITLE,
    debug_lines,
    format_row,
    plain_styles,
    render_frame,
)
from procexplorer.stats import SessionStats
from procexplorer.tasks import MockTaskProvider, MonitoredEntity, TaskState
from procexplorer.viewport import FOOTER_LINES, HEADER_LINES, TABLE_HEADER_LINES, Viewport, compute_geometry

NOW = 0.0
FIXED = HEADER_LINES + TABLE_HEADER_LINES + FOOTER_LINES


def _snapshot(n: int) -> list[MonitoredEntity]:
    return [
        MonitoredEntity(1000 + i, 2000 + i, f"task{i}", TaskState.RUNNING if i % 2 else TaskState.SLEEPING)
        for i in range(n)
    ]


def _render(win: FakeWindow, snapshot, viewport: Viewport, debug: bool = False, stats=None) -> None:
    geometry = compute_geometry(win.rows, win.cols, debug)
    viewport.clamp(len(snapshot), geometry.visible_rows)
    render_frame(
        win,
        snapshot,
        viewport,
        stats or SessionStats(),
        debug,
        geometry,
        plain_styles(),
        now=NOW,
    )


def test_format_row_columns() -> None:
    row = format_row(MonitoredEntity(42, 43, "bash", TaskState.DISK_WAIT))
    assert row.startswith("      42       43  bash")
    assert row.rstrip().endswith("Disk sleep")
    assert len(row) == len(TABLE_HEADER)


class TestFrame:
    def test_full_redraw_each_frame(self, window: FakeWindow) -> None:
        _render(window, _snapshot(3), Viewport())
        _render(window, _snapshot(3), Viewport())
        assert window.erase_calls == 2
        assert window.refresh_calls == 2

    def test_sections_in_order(self, window: FakeWindow) -> None:
        _render(window, _snapshot(3), Viewport())
        assert TITLE in window.text_at(0)
        assert "─" in window.text_at(1)
        assert "PID" in window.text_at(2)
        assert "task0" in window.text_at(4)
        assert window.text_at(window.rows - 1) == FOOTER_LEGEND

    def test_header_shows_count_and_size(self, window: FakeWindow) -> None:
        _render(window, _snapshot(7), Viewport())
        assert "7 tasks" in window.text_at(0)
        assert "24x80" in window.text_at(0)

    def test_scrolled_window_rows(self) -> None:
        win = FakeWindow(rows=FIXED + 3, cols=80)
        snapshot = _snapshot(5)
        vp = Viewport(selected=4, offset=2)
        _render(win, snapshot, vp)
        data_rows = [win.text_at(y) for y in range(4, 7)]
        assert ["task2" in data_rows[0], "task3" in data_rows[1], "task4" in data_rows[2]] == [True] * 3
        assert "task1" not in win.all_text()
        assert 7 not in {y for y in win.rows_written() if "task" in win.text_at(y)}

    def test_selected_row_highlighted_full_width(self) -> None:
        win = FakeWindow(rows=FIXED + 3, cols=80)
        _render(win, _snapshot(5), Viewport(selected=1, offset=0))
        (y, _, text, attr) = next(w for w in win.writes if "task1" in w[2])
        assert attr == curses.A_REVERSE
        assert len(text) == win.cols - 1
        others = [w for w in win.writes if "task0" in w[2]]
        assert others[0][3] != curses.A_REVERSE

    def test_state_styles_applied(self, window: FakeWindow) -> None:
        styles = plain_styles()
        styles["running"] = 111
        styles["sleeping"] = 222
        snapshot = _snapshot(3)
        geometry = compute_geometry(window.rows, window.cols, False)
        vp = Viewport(selected=0, offset=0)
        render_frame(window, snapshot, vp, SessionStats(), False, geometry, styles, now=NOW)
        attrs = {w[2].split()[2]: w[3] for w in window.writes if "task" in w[2]}
        assert attrs["task1"] == 111
        assert attrs["task2"] == 222


class TestScrollIndicator:
    def test_hidden_when_everything_fits(self, window: FakeWindow) -> None:
        _render(window, _snapshot(3), Viewport())
        assert "[1/3]" not in window.text_at(2)

    def test_shown_when_snapshot_exceeds_window(self) -> None:
        win = FakeWindow(rows=FIXED + 3, cols=80)
        _render(win, _snapshot(5), Viewport(selected=4, offset=2))
        assert "[5/5]" in win.text_at(2)


class TestDebugPanel:
    def test_absent_by_default(self, window: FakeWindow) -> None:
        _render(window, _snapshot(3), Viewport(), stats=SessionStats(resize_count=4))
        assert "Debug" not in window.all_text()

    def test_drawn_when_toggled(self, window: FakeWindow) -> None:
        stats = SessionStats(resize_count=4, timeout_count=9, input_count=2, interrupt_count=1)
        _render(window, MockTaskProvider().list(), Viewport(), debug=True, stats=stats)
        text = window.all_text()
        assert "Debug" in text
        assert "resizes 4" in text
        assert "timeouts 9" in text
        assert "interrupts 1" in text
        assert "last none" in text
        # table stops above the panel, footer still at the bottom
        geometry = compute_geometry(window.rows, window.cols, True)
        assert "─" in window.text_at(geometry.debug_top)
        assert window.text_at(window.rows - 1) == FOOTER_LEGEND

    def test_reports_last_error(self) -> None:
        stats = SessionStats(last_error_code=5)
        geometry = compute_geometry(24, 80, True)
        lines = debug_lines(stats, geometry, Viewport(), resize_pending=True)
        assert any("last 5 (" in line for line in lines)
        assert any("pending yes" in line for line in lines)


class TestDegenerate:
    def test_empty_snapshot(self, window: FakeWindow) -> None:
        vp = Viewport()
        _render(window, [], vp)
        assert "No tasks to display" in window.all_text()
        assert "0 tasks" in window.text_at(0)
        assert window.text_at(window.rows - 1) == FOOTER_LEGEND
        assert vp.selected is None

    @pytest.mark.parametrize("rows", [FIXED, 3, 2, 1])
    def test_too_small_for_content(self, rows: int) -> None:
        win = FakeWindow(rows=rows, cols=80)
        _render(win, _snapshot(10), Viewport(), debug=True)
        assert "task0" not in win.all_text()
        assert "PID" not in win.all_text()
        assert "Debug" not in win.all_text()
        assert FOOTER_LEGEND in win.text_at(rows - 1)

    @pytest.mark.parametrize(("rows", "cols"), [(0, 0), (1, 1), (24, 5), (30, 20)])
    def test_never_raises(self, rows: int, cols: int) -> None:
        win = FakeWindow(rows=rows, cols=cols)
        _render(win, _snapshot(40), Viewport(), debug=True)
        assert win.refresh_calls == 1

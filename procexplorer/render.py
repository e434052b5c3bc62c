"""Frame composition: header, task table, debug panel, footer.

Every section owns a disjoint band of rows computed by
``viewport.compute_geometry``. A frame is always drawn in full: erase,
draw every section, one ``refresh()``.
"""

from __future__ import annotations

import curses
import time
from collections.abc import Sequence
from typing import Any

from procexplorer.stats import SessionStats
from procexplorer.tasks import LABEL_MAX, MonitoredEntity, TaskState
from procexplorer.viewport import LayoutGeometry, Viewport

TITLE = "ProcessExplorerLite"
FOOTER_LEGEND = "Keys: [↑/↓] move | [d]ebug | [r]efresh | [h]elp | [q]uit"
SEPARATOR = "─"

# Curses colour-pair IDs
C_TITLE = 1
C_FOOTER = 2
C_ACCENT = 3
C_DIM = 4
_STATE_PAIR_BASE = 10

_COLOR_NAMES: dict[str, int] = {
    "black": curses.COLOR_BLACK,
    "red": curses.COLOR_RED,
    "green": curses.COLOR_GREEN,
    "yellow": curses.COLOR_YELLOW,
    "blue": curses.COLOR_BLUE,
    "magenta": curses.COLOR_MAGENTA,
    "cyan": curses.COLOR_CYAN,
    "white": curses.COLOR_WHITE,
}

Styles = dict[str, int]


# ── Styles ─────────────────────────────────────────────────────────────────


def plain_styles() -> Styles:
    """Attribute-only styles for monochrome terminals (and tests)."""
    styles: Styles = {
        "title": curses.A_BOLD,
        "footer": curses.A_NORMAL,
        "accent": curses.A_BOLD,
        "dim": curses.A_NORMAL,
        "selected": curses.A_REVERSE,
    }
    for state in TaskState:
        styles[state.key] = curses.A_NORMAL
    return styles


def init_styles(colors: dict[str, str]) -> Styles:
    """Set up colour pairs from the ``[colors]`` config table.

    Must be called after curses is initialised. Falls back to
    ``plain_styles()`` when the terminal has no colour support.
    """
    styles = plain_styles()
    if not curses.has_colors():
        return styles
    curses.start_color()
    curses.use_default_colors()
    curses.init_pair(C_TITLE, curses.COLOR_CYAN, -1)
    curses.init_pair(C_FOOTER, curses.COLOR_GREEN, -1)
    curses.init_pair(C_ACCENT, curses.COLOR_YELLOW, -1)
    curses.init_pair(C_DIM, curses.COLOR_WHITE, -1)
    styles["title"] = curses.color_pair(C_TITLE) | curses.A_BOLD
    styles["footer"] = curses.color_pair(C_FOOTER)
    styles["accent"] = curses.color_pair(C_ACCENT) | curses.A_BOLD
    styles["dim"] = curses.color_pair(C_DIM)

    for i, state in enumerate(TaskState):
        color = _COLOR_NAMES.get(str(colors.get(state.key, "white")).lower())
        if color is None:
            color = curses.COLOR_WHITE
        pair = _STATE_PAIR_BASE + i
        curses.init_pair(pair, color, -1)
        styles[state.key] = curses.color_pair(pair)
    return styles


# ── Drawing primitives ─────────────────────────────────────────────────────


def _safe(win: Any, *args: Any) -> None:
    """addstr wrapper that swallows out-of-bounds errors."""
    try:
        win.addstr(*args)
    except curses.error:
        pass


def _fit(text: str, width: int) -> str:
    if width <= 0:
        return ""
    return text[:width]


def format_row(entity: MonitoredEntity) -> str:
    return (
        f" {entity.pid:>7d}  {entity.tid:>7d}  "
        f"{entity.label:<{LABEL_MAX}s}  {entity.state.label:<10s}"
    )


TABLE_HEADER = f" {'PID':>7s}  {'TID':>7s}  {'COMMAND':<{LABEL_MAX}s}  {'STATE':<10s}"


# ── Sections ───────────────────────────────────────────────────────────────


def draw_header(
    win: Any, geometry: LayoutGeometry, count: int, styles: Styles, now: float
) -> None:
    w = geometry.cols
    clock = time.strftime("%H:%M:%S", time.localtime(now))
    status = f"{count} tasks  {geometry.rows}x{geometry.cols}"
    _safe(win, 0, 0, _fit(TITLE, w - 1), styles["title"])
    if len(TITLE) + len(clock) + 4 < w:
        _safe(win, 0, (w - len(clock)) // 2, clock, styles["accent"])
    if len(TITLE) + len(clock) + len(status) + 8 < w:
        _safe(win, 0, w - len(status) - 1, status, styles["title"])
    if geometry.rows > 1:
        _safe(win, 1, 0, SEPARATOR * max(0, w - 1), styles["dim"])


def draw_table(
    win: Any,
    geometry: LayoutGeometry,
    snapshot: Sequence[MonitoredEntity],
    viewport: Viewport,
    styles: Styles,
) -> None:
    w = geometry.cols
    top = geometry.content_top
    _safe(win, top, 0, _fit(TABLE_HEADER, w - 1), styles["title"])
    if len(snapshot) > geometry.visible_rows:
        indicator = f"[{viewport.position_label(len(snapshot))}]"
        if len(TABLE_HEADER) + len(indicator) + 2 < w:
            _safe(win, top, w - len(indicator) - 1, indicator, styles["accent"])
    _safe(win, top + 1, 0, SEPARATOR * max(0, w - 1), styles["dim"])

    if not snapshot:
        _safe(win, geometry.data_top, 1, _fit("No tasks to display", w - 2), styles["dim"])
        return

    y = geometry.data_top
    for index in viewport.visible_range(len(snapshot), geometry.visible_rows):
        entity = snapshot[index]
        line = format_row(entity)
        if index == viewport.selected:
            _safe(win, y, 0, _fit(line.ljust(w - 1), w - 1), styles["selected"])
        else:
            _safe(win, y, 0, _fit(line, w - 1), styles[entity.state.key])
        y += 1


def debug_lines(
    stats: SessionStats,
    geometry: LayoutGeometry,
    viewport: Viewport,
    resize_pending: bool,
) -> list[str]:
    return [
        f" Signals   resizes {stats.resize_count}  pending {'yes' if resize_pending else 'no'}",
        f" Waits     timeouts {stats.timeout_count}  inputs {stats.input_count}"
        f"  interrupts {stats.interrupt_count}",
        f" Errors    last {stats.last_error}  scan failures {stats.provider_errors}",
        f" Terminal  {geometry.rows}x{geometry.cols}  visible rows {geometry.visible_rows}",
        f" Viewport  selected {'-' if viewport.selected is None else viewport.selected}"
        f"  offset {viewport.offset}",
    ]


def draw_debug(
    win: Any,
    geometry: LayoutGeometry,
    stats: SessionStats,
    viewport: Viewport,
    styles: Styles,
    resize_pending: bool = False,
) -> None:
    w = geometry.cols
    y = geometry.debug_top
    _safe(win, y, 0, SEPARATOR * max(0, w - 1), styles["dim"])
    _safe(win, y + 1, 1, _fit("Debug", w - 2), styles["accent"])
    for i, line in enumerate(debug_lines(stats, geometry, viewport, resize_pending)):
        _safe(win, y + 2 + i, 0, _fit(line, w - 1), styles["dim"])


def draw_footer(win: Any, geometry: LayoutGeometry, styles: Styles) -> None:
    _safe(win, geometry.footer_top, 0, _fit(FOOTER_LEGEND, geometry.cols - 1), styles["footer"])


# ── Full frame ─────────────────────────────────────────────────────────────


def render_frame(
    win: Any,
    snapshot: Sequence[MonitoredEntity],
    viewport: Viewport,
    stats: SessionStats,
    debug_visible: bool,
    geometry: LayoutGeometry,
    styles: Styles,
    now: float | None = None,
    resize_pending: bool = False,
) -> None:
    """Erase and redraw the whole screen, then push it with one refresh."""
    win.erase()
    draw_header(win, geometry, len(snapshot), styles, time.time() if now is None else now)
    if geometry.show_content:
        draw_table(win, geometry, snapshot, viewport, styles)
        if debug_visible and geometry.debug_lines:
            draw_debug(win, geometry, stats, viewport, styles, resize_pending)
    draw_footer(win, geometry, styles)
    win.refresh()

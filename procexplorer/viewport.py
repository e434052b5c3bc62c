"""Layout geometry and the scrollable selection over a snapshot."""

from __future__ import annotations

import enum
from dataclasses import dataclass

HEADER_LINES = 2  # title + separator
TABLE_HEADER_LINES = 2  # column names + separator
FOOTER_LINES = 1
DEBUG_LINES = 7  # separator + title + 5 counter lines


class Direction(enum.Enum):
    UP = -1
    DOWN = 1


@dataclass(slots=True, frozen=True)
class LayoutGeometry:
    """Row budget for one frame. Recomputed every iteration, never stored."""

    rows: int
    cols: int
    header_lines: int
    table_header_lines: int
    debug_lines: int
    footer_lines: int
    visible_rows: int

    @property
    def show_content(self) -> bool:
        """False when the window is too small for even one data row."""
        return self.visible_rows > 0

    @property
    def content_top(self) -> int:
        return self.header_lines

    @property
    def data_top(self) -> int:
        return self.header_lines + self.table_header_lines

    @property
    def debug_top(self) -> int:
        return self.data_top + max(0, self.visible_rows)

    @property
    def footer_top(self) -> int:
        return max(0, self.rows - self.footer_lines)


def compute_geometry(rows: int, cols: int, debug_visible: bool) -> LayoutGeometry:
    """Split *rows* between header, table, optional debug panel and footer.

    ``visible_rows`` may come out zero or negative on a tiny window; callers
    check ``show_content`` and the viewport treats it as "nothing visible".
    The debug panel is dropped first when space is short.
    """
    debug_lines = DEBUG_LINES if debug_visible else 0
    fixed = HEADER_LINES + TABLE_HEADER_LINES + FOOTER_LINES
    if debug_lines and rows - fixed - debug_lines < 1:
        debug_lines = 0
    return LayoutGeometry(
        rows=rows,
        cols=cols,
        header_lines=HEADER_LINES,
        table_header_lines=TABLE_HEADER_LINES,
        debug_lines=debug_lines,
        footer_lines=FOOTER_LINES,
        visible_rows=rows - fixed - debug_lines,
    )


@dataclass
class Viewport:
    """Selection index and scroll offset over a snapshot of ``length`` rows.

    ``selected`` is None while the snapshot is empty. After every mutation
    ``offset <= selected < offset + visible_rows`` holds whenever there is
    at least one row and one visible line.
    """

    selected: int | None = None
    offset: int = 0

    def visible_range(self, length: int, visible_rows: int) -> range:
        """Indices of the snapshot rows drawn this frame."""
        if length <= 0 or visible_rows <= 0:
            return range(0)
        return range(self.offset, min(length, self.offset + visible_rows))

    def clamp(self, length: int, visible_rows: int) -> None:
        """Re-establish the invariant after the snapshot or window changed.

        The selection is kept (clipped to the last row if the snapshot
        shrank) and the offset moves to keep it in view, without scrolling
        past ``length - visible_rows``.
        """
        if length <= 0:
            self.selected = None
            self.offset = 0
            return
        visible = max(1, visible_rows)
        if self.selected is None:
            self.selected = 0
        self.selected = min(max(self.selected, 0), length - 1)
        self.offset = min(max(self.offset, 0), max(0, length - visible))
        if self.selected < self.offset:
            self.offset = self.selected
        elif self.selected >= self.offset + visible:
            self.offset = self.selected - visible + 1

    def update_selection(
        self, direction: Direction, length: int, visible_rows: int
    ) -> None:
        """Move the selection one row, scrolling just enough to keep it shown."""
        if length <= 0 or self.selected is None:
            return
        visible = max(1, visible_rows)
        if direction is Direction.UP:
            if self.selected > 0:
                self.selected -= 1
                if self.selected < self.offset:
                    self.offset = self.selected
        elif self.selected < length - 1:
            self.selected += 1
            if self.selected >= self.offset + visible:
                self.offset = self.selected - visible + 1

    def position_label(self, length: int) -> str:
        """``current/total`` scroll indicator text."""
        if self.selected is None:
            return f"0/{length}"
        return f"{self.selected + 1}/{length}"

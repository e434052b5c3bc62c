"""Shared fakes for curses-free tests."""

from __future__ import annotations

import curses

import pytest


class FakeWindow:
    """Records addstr calls on a rows x cols grid, like a curses window.

    Writes that start outside the window raise ``curses.error`` just as the
    real thing does.
    """

    def __init__(self, rows: int = 24, cols: int = 80) -> None:
        self.rows = rows
        self.cols = cols
        self.writes: list[tuple[int, int, str, int]] = []
        self.erase_calls = 0
        self.refresh_calls = 0
        self.clear_calls = 0
        self.keys: list[int] = []

    def getmaxyx(self) -> tuple[int, int]:
        return self.rows, self.cols

    def addstr(self, y: int, x: int, text: str, attr: int = 0) -> None:
        if not (0 <= y < self.rows and 0 <= x < self.cols):
            raise curses.error("addwstr() returned ERR")
        self.writes.append((y, x, text, attr))

    def erase(self) -> None:
        self.erase_calls += 1
        self.writes.clear()

    def clear(self) -> None:
        self.clear_calls += 1

    def refresh(self) -> None:
        self.refresh_calls += 1

    def getch(self) -> int:
        return self.keys.pop(0) if self.keys else -1

    # helpers for assertions

    def text_at(self, y: int) -> str:
        return "".join(t for row, _, t, _ in self.writes if row == y)

    def rows_written(self) -> set[int]:
        return {row for row, _, _, _ in self.writes}

    def all_text(self) -> str:
        return "\n".join(t for _, _, t, _ in self.writes)


@pytest.fixture
def window() -> FakeWindow:
    return FakeWindow()

"""Interactive process/thread explorer — procexplorer's top-style TUI.

Redraws a scrollable task table once per interval, reacts to keys the
moment they arrive and re-lays out the screen after a terminal resize,
without polling in between.

Usage:
    uv run procexplorer
    uv run procexplorer --source proc --interval 2 --config path/to/config.toml
"""

from __future__ import annotations

import argparse
import curses
import enum
import logging
import os
import sys
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from procexplorer.config import SOURCES, dump_default_config, load_config, validate_config
from procexplorer.render import Styles, init_styles, render_frame
from procexplorer.resize import ResizeNotifier
from procexplorer.stats import SessionStats
from procexplorer.tasks import SafeProvider, Snapshot, TaskProvider, make_provider
from procexplorer.viewport import Direction, LayoutGeometry, Viewport, compute_geometry
from procexplorer.waiter import InputWaiter, WaitOutcome

logger = logging.getLogger(__name__)

FAREWELL = "Thank you for using ProcessExplorerLite!"

KEYS_QUIT = (ord("q"), ord("Q"))
KEYS_DEBUG = (ord("d"), ord("D"))
KEYS_REFRESH = (ord("r"), ord("R"))
KEYS_HELP = (ord("h"), ord("H"))


class LoopState(enum.Enum):
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATING = "terminating"


def resync_terminal(screen: Any) -> tuple[int, int]:
    """Tell curses the real terminal size after a SIGWINCH.

    Our handler replaces the one ncurses installs, so ncurses never learns
    about the resize on its own. ``resize_term`` is used rather than
    ``resizeterm``: the latter queues a KEY_RESIZE that getch() would hand
    back in place of the key the user actually pressed.
    """
    try:
        size = os.get_terminal_size(sys.__stdout__.fileno())
    except (OSError, AttributeError, ValueError):
        return screen.getmaxyx()
    curses.resize_term(size.lines, size.columns)
    curses.update_lines_cols()
    screen.clear()
    return size.lines, size.columns


class Dashboard:
    """The event loop: drain resize → layout → fetch → render → wait → dispatch."""

    def __init__(
        self,
        screen: Any,
        provider: TaskProvider,
        waiter: InputWaiter,
        notifier: ResizeNotifier,
        styles: Styles,
        stats: SessionStats | None = None,
        interval: float = 1.0,
        debug_visible: bool = False,
        resync: Callable[[Any], object] = resync_terminal,
    ) -> None:
        self.screen = screen
        self.provider = provider
        self.waiter = waiter
        self.notifier = notifier
        self.styles = styles
        self.stats = stats if stats is not None else SessionStats()
        self.interval = interval
        self.debug_visible = debug_visible
        self.viewport = Viewport()
        self.state = LoopState.RUNNING
        self.snapshot: Snapshot = ()
        self.geometry: LayoutGeometry | None = None
        self._resync = resync

    @property
    def exit_code(self) -> int:
        return 1 if self.stats.last_error_code else 0

    def current_geometry(self) -> LayoutGeometry:
        rows, cols = self.screen.getmaxyx()
        return compute_geometry(rows, cols, self.debug_visible)

    # ── loop ───────────────────────────────────────────────────────────────

    def run(self) -> int:
        while self.state is not LoopState.TERMINATING:
            self.step()
        return self.exit_code

    def step(self) -> None:
        """One full iteration of the loop."""
        if self.notifier.drain():
            self.state = LoopState.DRAINING
            self.stats.resize_count += 1
            size = self._resync(self.screen)
            logger.debug("terminal resized to %s", size)
            self.state = LoopState.RUNNING

        self.geometry = self.current_geometry()

        self.snapshot = self.provider.list()
        if isinstance(self.provider, SafeProvider):
            self.stats.provider_errors = self.provider.errors
        self.viewport.clamp(len(self.snapshot), self.geometry.visible_rows)

        render_frame(
            self.screen,
            self.snapshot,
            self.viewport,
            self.stats,
            self.debug_visible,
            self.geometry,
            self.styles,
            resize_pending=self.notifier.pending,
        )

        result = self.waiter.wait(self.interval)
        if result.outcome is WaitOutcome.READY:
            self.handle_key(self.read_key())
        elif result.outcome is WaitOutcome.TIMEOUT:
            self.stats.timeout_count += 1
        elif result.outcome is WaitOutcome.INTERRUPTED:
            self.stats.interrupt_count += 1
        else:
            self.stats.last_error_code = result.code
            logger.error("input wait failed: %s", result.description)
            self.state = LoopState.TERMINATING

    # ── input ──────────────────────────────────────────────────────────────

    def read_key(self) -> int:
        """Next real key, skipping any KEY_RESIZE curses queued itself.

        Resizes are detected by the SIGWINCH handler alone, so these are
        dropped without touching the resize flag.
        """
        key = self.screen.getch()
        while key == curses.KEY_RESIZE:
            key = self.screen.getch()
        return key

    def handle_key(self, key: int) -> None:
        if key in (-1, curses.KEY_RESIZE):
            return  # readiness without a complete key

        self.stats.input_count += 1
        if key in KEYS_QUIT:
            self.state = LoopState.TERMINATING
        elif key in (curses.KEY_UP, curses.KEY_DOWN):
            direction = Direction.UP if key == curses.KEY_UP else Direction.DOWN
            visible_rows = self.current_geometry().visible_rows
            self.viewport.update_selection(direction, len(self.snapshot), visible_rows)
        elif key in KEYS_DEBUG:
            self.debug_visible = not self.debug_visible
        elif key in KEYS_REFRESH:
            pass  # next iteration re-fetches and redraws immediately
        elif key in KEYS_HELP:
            pass  # reserved


# ── Setup ──────────────────────────────────────────────────────────────────


def configure_logging(path: Path | None, level: str = "INFO") -> None:
    """Route log records to *path*, or drop them: the screen belongs to curses."""
    root = logging.getLogger()
    if path is None:
        root.addHandler(logging.NullHandler())
        return
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    root.addHandler(handler)
    root.setLevel(level)


def _dashboard_main(
    stdscr: Any, config: dict[str, Any], stats: SessionStats
) -> int:
    try:
        curses.curs_set(0)
    except curses.error:
        pass  # terminal cannot hide the cursor
    stdscr.keypad(True)
    stdscr.nodelay(True)

    styles = init_styles(config["colors"])
    provider = make_provider(config["source"], config["max_tasks"])

    with ResizeNotifier() as notifier:
        waiter = InputWaiter(sys.stdin.fileno(), notifier.fileno(), notifier.clear_wakeup)
        dashboard = Dashboard(
            stdscr,
            provider,
            waiter,
            notifier,
            styles,
            stats=stats,
            interval=config["interval"],
            debug_visible=config["show_debug"],
        )
        return dashboard.run()


# ── CLI entry point ────────────────────────────────────────────────────────


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Interactive process and thread explorer.",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between refreshes (default: 1.0)",
    )
    parser.add_argument(
        "--source",
        choices=SOURCES,
        default=None,
        help="Task source: built-in mock data or live /proc scan (default: mock)",
    )
    parser.add_argument(
        "--max-tasks",
        type=int,
        default=None,
        metavar="N",
        help="Maximum number of rows per snapshot (default: 1000)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Start with the debug panel visible",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Path to TOML config file",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        metavar="PATH",
        help="Write a log to PATH (nothing is logged otherwise)",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="INFO",
        help="Log level for --log-file (default: INFO)",
    )
    parser.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the default config as TOML and exit",
    )
    args = parser.parse_args()

    if args.dump_config:
        print(dump_default_config(), end="")
        return

    config = load_config(args.config)
    if args.interval is not None:
        config["interval"] = args.interval
    if args.source is not None:
        config["source"] = args.source
    if args.max_tasks is not None:
        config["max_tasks"] = args.max_tasks
    if args.debug:
        config["show_debug"] = True
    config = validate_config(config)

    configure_logging(args.log_file, args.log_level)
    logger.info(
        "starting: source=%s interval=%.2fs max_tasks=%d",
        config["source"],
        config["interval"],
        config["max_tasks"],
    )

    stats = SessionStats()
    started = time.monotonic()
    exit_code = 0
    try:
        exit_code = curses.wrapper(_dashboard_main, config, stats)
    except KeyboardInterrupt:
        pass

    # The terminal is restored by curses.wrapper before anything is printed.
    logger.info(
        "stopped after %.1fs: %s",
        time.monotonic() - started,
        stats.summary().replace("\n", " "),
    )
    if exit_code:
        print(
            f"procexplorer: fatal: waiting for input failed: {stats.last_error}",
            file=sys.stderr,
        )
    print(stats.summary())
    print(FAREWELL)
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()

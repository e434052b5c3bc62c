"""SIGWINCH → flag bridge.

The handler only bumps a counter; everything that touches curses happens
later in the main loop when it calls ``drain()``. A wakeup pipe registered
with ``signal.set_wakeup_fd`` makes a blocked ``select()`` return as soon as
the signal lands, which is how the input waiter tells "interrupted by a
resize" apart from a timeout.
"""

from __future__ import annotations

import logging
import os
import signal
from types import FrameType
from typing import Any

logger = logging.getLogger(__name__)


class ResizeNotifier:
    """Single-writer (signal handler) / single-reader (main loop) resize flag.

    The handler increments ``_delivered``; the loop remembers the last value
    it saw in ``_seen``. Each side writes only its own counter, so a signal
    landing in the middle of ``drain()`` is never lost, and any number of
    signals between two drains collapse into one pending resize.
    """

    def __init__(self, signum: int | None = None) -> None:
        self.signum = signum if signum is not None else signal.SIGWINCH
        self._delivered = 0
        self._seen = 0
        self._prev_handler: Any = None
        self._prev_wakeup_fd = -1
        self._read_fd = -1
        self._write_fd = -1
        self.installed = False

    # ── signal context ─────────────────────────────────────────────────────

    def _on_signal(self, signum: int, frame: FrameType | None) -> None:
        self._delivered += 1

    # ── main-loop context ──────────────────────────────────────────────────

    def notify(self) -> None:
        """Raise the flag from the main loop (curses reported KEY_RESIZE)."""
        self._delivered += 1

    @property
    def pending(self) -> bool:
        return self._delivered != self._seen

    def drain(self) -> bool:
        """Clear the flag; return True if at least one resize was pending."""
        delivered = self._delivered
        if delivered == self._seen:
            return False
        self._seen = delivered
        return True

    def fileno(self) -> int:
        """Read end of the wakeup pipe (-1 when not installed)."""
        return self._read_fd

    def clear_wakeup(self) -> None:
        """Discard the bytes the interpreter wrote to the wakeup pipe."""
        if self._read_fd < 0:
            return
        while True:
            try:
                if not os.read(self._read_fd, 512):
                    return
            except (BlockingIOError, InterruptedError):
                return

    def install(self) -> None:
        """Register the handler and wakeup pipe. Must run in the main thread."""
        if self.installed:
            return
        self._read_fd, self._write_fd = os.pipe()
        os.set_blocking(self._read_fd, False)
        os.set_blocking(self._write_fd, False)
        try:
            self._prev_wakeup_fd = signal.set_wakeup_fd(
                self._write_fd, warn_on_full_buffer=False
            )
            # signal.signal keeps the handler installed across deliveries
            self._prev_handler = signal.signal(self.signum, self._on_signal)
        except (ValueError, OSError):
            self._close_pipe()
            raise
        self.installed = True
        logger.debug("resize handler installed for signal %d", self.signum)

    def uninstall(self) -> None:
        """Restore the previous handler and wakeup fd, close the pipe."""
        if not self.installed:
            return
        try:
            signal.signal(self.signum, self._prev_handler or signal.SIG_DFL)
            signal.set_wakeup_fd(self._prev_wakeup_fd)
        finally:
            self._close_pipe()
            self.installed = False

    def _close_pipe(self) -> None:
        for fd in (self._read_fd, self._write_fd):
            if fd >= 0:
                os.close(fd)
        self._read_fd = self._write_fd = -1

    def __enter__(self) -> ResizeNotifier:
        self.install()
        return self

    def __exit__(self, *exc: object) -> None:
        self.uninstall()

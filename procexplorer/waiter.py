"""Bounded wait on the keyboard stream.

``InputWaiter.wait()`` is the one place the dashboard blocks. It returns
as soon as stdin is readable, when the timeout expires, or when a signal
writes to the resize notifier's wakeup pipe.
"""

from __future__ import annotations

import enum
import errno
import logging
import os
import select
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 1.0


class WaitOutcome(enum.Enum):
    READY = "ready"
    TIMEOUT = "timeout"
    INTERRUPTED = "interrupted"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class WaitResult:
    outcome: WaitOutcome
    code: int = 0

    @property
    def description(self) -> str:
        return os.strerror(self.code) if self.code else ""


READY = WaitResult(WaitOutcome.READY)
TIMEOUT = WaitResult(WaitOutcome.TIMEOUT)
INTERRUPTED = WaitResult(WaitOutcome.INTERRUPTED)


class InputWaiter:
    """select()-based waiter over one input fd plus an optional wakeup fd.

    Args:
        input_fd: Descriptor to watch for keyboard input (usually stdin).
        wakeup_fd: Read end of the signal wakeup pipe, or -1 for none.
        drain_wakeup: Called after the wakeup fd fires to empty the pipe.
    """

    def __init__(
        self,
        input_fd: int,
        wakeup_fd: int = -1,
        drain_wakeup: Callable[[], None] | None = None,
    ) -> None:
        self.input_fd = input_fd
        self.wakeup_fd = wakeup_fd
        self._drain_wakeup = drain_wakeup

    def wait(self, timeout: float = DEFAULT_TIMEOUT) -> WaitResult:
        # Fresh descriptor list and timeout each call; nothing is reused.
        watched = [self.input_fd]
        if self.wakeup_fd >= 0:
            watched.append(self.wakeup_fd)
        try:
            readable, _, _ = select.select(watched, [], [], timeout)
        except InterruptedError:
            return INTERRUPTED
        except OSError as e:
            code = e.errno or errno.EIO
            logger.error("select() on fd %d failed: %s", self.input_fd, e)
            return WaitResult(WaitOutcome.ERROR, code)
        except ValueError:
            # negative or closed descriptor
            logger.error("select() given an invalid descriptor: %s", watched)
            return WaitResult(WaitOutcome.ERROR, errno.EBADF)

        if self.wakeup_fd >= 0 and self.wakeup_fd in readable:
            if self._drain_wakeup is not None:
                self._drain_wakeup()
            # input that arrived together with the signal is read next loop
            return INTERRUPTED
        if self.input_fd in readable:
            return READY
        return TIMEOUT

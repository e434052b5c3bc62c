"""Task data providers — the snapshots the dashboard scrolls through.

Two sources are available:

* ``MockTaskProvider`` — a deterministic generator (50 processes with one to
  four threads each) useful for demos and tests.
* ``ProcTaskProvider`` — scans every live process and its threads with
  psutil, reading per-thread state from ``/proc/<pid>/task/<tid>/stat``.

Both are wrapped in ``SafeProvider`` by the dashboard so that a failing scan
degrades to the previous snapshot instead of crashing the UI.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

import psutil

logger = logging.getLogger(__name__)

MAX_TASKS = 1000
LABEL_MAX = 31
ELLIPSIS = "..."


class ProviderError(Exception):
    """Raised when a task source cannot produce a snapshot."""


class TaskState(enum.Enum):
    """Scheduler state of a monitored task."""

    RUNNING = "R"
    SLEEPING = "S"
    DISK_WAIT = "D"
    ZOMBIE = "Z"
    STOPPED = "T"
    UNKNOWN = "?"

    @classmethod
    def from_code(cls, code: str | None) -> TaskState:
        """Map a /proc state letter (or psutil status string) to a TaskState."""
        if not code:
            return cls.UNKNOWN
        if len(code) > 1:
            return _PSUTIL_STATUS.get(code, cls.UNKNOWN)
        if code == "t":  # tracing stop
            return cls.STOPPED
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN

    @property
    def label(self) -> str:
        return _STATE_LABELS[self]

    @property
    def key(self) -> str:
        """Config key used for colour lookup (``disk_wait``, ``running``...)."""
        return self.name.lower()


_STATE_LABELS: dict[TaskState, str] = {
    TaskState.RUNNING: "Running",
    TaskState.SLEEPING: "Sleeping",
    TaskState.DISK_WAIT: "Disk sleep",
    TaskState.ZOMBIE: "Zombie",
    TaskState.STOPPED: "Stopped",
    TaskState.UNKNOWN: "Unknown",
}

_PSUTIL_STATUS: dict[str, TaskState] = {
    psutil.STATUS_RUNNING: TaskState.RUNNING,
    psutil.STATUS_SLEEPING: TaskState.SLEEPING,
    psutil.STATUS_IDLE: TaskState.SLEEPING,
    psutil.STATUS_DISK_SLEEP: TaskState.DISK_WAIT,
    psutil.STATUS_ZOMBIE: TaskState.ZOMBIE,
    psutil.STATUS_STOPPED: TaskState.STOPPED,
    psutil.STATUS_TRACING_STOP: TaskState.STOPPED,
}


def truncate_label(text: str, limit: int = LABEL_MAX) -> str:
    """Clip *text* to *limit* characters, ending in an ellipsis when clipped."""
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


@dataclass(slots=True, frozen=True)
class MonitoredEntity:
    """One row of a snapshot: a thread of a process."""

    pid: int
    tid: int
    label: str
    state: TaskState

    def __post_init__(self) -> None:
        if len(self.label) > LABEL_MAX:
            object.__setattr__(self, "label", truncate_label(self.label))


Snapshot = Sequence[MonitoredEntity]


class TaskProvider(Protocol):
    def list(self) -> Snapshot: ...


# ── Mock source ─────────────────────────────────────────────────────────────

MOCK_COMMANDS: tuple[str, ...] = (
    "systemd", "kthreadd", "bash", "vim", "firefox",
    "chrome", "docker", "nginx", "postgres", "python3",
    "gcc", "make", "ssh", "sshd", "cron",
    "dbus-daemon", "NetworkManager", "pulseaudio", "Xorg", "gnome-shell",
)
MOCK_STATES = "RSSSDSSSSS"
MOCK_PROCESSES = 50


class MockTaskProvider:
    """Fake process table: pid 100, 110, ... each with 1-4 threads."""

    def __init__(self, max_tasks: int = MAX_TASKS) -> None:
        self.max_tasks = max_tasks

    def list(self) -> list[MonitoredEntity]:
        tasks: list[MonitoredEntity] = []
        for i in range(MOCK_PROCESSES):
            pid = 100 + i * 10
            for t in range(1 + i % 4):
                if len(tasks) >= self.max_tasks:
                    return tasks
                tasks.append(
                    MonitoredEntity(
                        pid=pid,
                        tid=pid + t,
                        label=MOCK_COMMANDS[i % len(MOCK_COMMANDS)],
                        state=TaskState(MOCK_STATES[len(tasks) % len(MOCK_STATES)]),
                    )
                )
        return tasks


# ── /proc source ────────────────────────────────────────────────────────────


def _read_thread_state(pid: int, tid: int) -> str | None:
    """Read the state letter of one thread from /proc (None if unreadable)."""
    try:
        with open(f"/proc/{pid}/task/{tid}/stat") as f:
            stat = f.read()
    except OSError:
        return None
    # comm may contain spaces and parens; the state follows the last ')'
    _, _, rest = stat.rpartition(")")
    fields = rest.split()
    return fields[0] if fields else None


class ProcTaskProvider:
    """Live process and thread scanner backed by psutil."""

    def __init__(self, max_tasks: int = MAX_TASKS) -> None:
        self.max_tasks = max_tasks

    def list(self) -> list[MonitoredEntity]:
        tasks: list[MonitoredEntity] = []
        # process_iter is lazy: listing /proc fails inside the loop, not here
        try:
            self._scan(tasks)
        except OSError as e:
            raise ProviderError(f"cannot enumerate processes: {e}") from e
        return tasks

    def _scan(self, tasks: list[MonitoredEntity]) -> None:
        for proc in psutil.process_iter(["pid", "name", "status"]):
            if len(tasks) >= self.max_tasks:
                break
            try:
                info = proc.info
                pid: int = info.get("pid", 0)
                name: str = info.get("name") or "?"
                status = info.get("status")
                threads = proc.threads()
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue

            if not threads:
                tasks.append(
                    MonitoredEntity(pid, pid, name, TaskState.from_code(status))
                )
                continue

            for thread in threads:
                if len(tasks) >= self.max_tasks:
                    break
                code = _read_thread_state(pid, thread.id) or status
                tasks.append(
                    MonitoredEntity(pid, thread.id, name, TaskState.from_code(code))
                )


# ── Fault isolation ─────────────────────────────────────────────────────────


class SafeProvider:
    """Wrap a provider so failures yield the last good snapshot.

    The wrapped provider's result is also capped at *max_tasks*.
    """

    def __init__(self, inner: TaskProvider, max_tasks: int = MAX_TASKS) -> None:
        self.inner = inner
        self.max_tasks = max_tasks
        self.errors = 0
        self._last: tuple[MonitoredEntity, ...] = ()

    def list(self) -> tuple[MonitoredEntity, ...]:
        try:
            snapshot = tuple(self.inner.list())[: self.max_tasks]
        except Exception:
            self.errors += 1
            logger.warning(
                "task provider failed, reusing previous snapshot (%d rows)",
                len(self._last),
                exc_info=True,
            )
            return self._last
        self._last = snapshot
        return snapshot


def make_provider(source: str, max_tasks: int = MAX_TASKS) -> SafeProvider:
    """Build the wrapped provider for a config ``source`` name."""
    if source == "mock":
        inner: TaskProvider = MockTaskProvider(max_tasks)
    elif source == "proc":
        inner = ProcTaskProvider(max_tasks)
    else:
        raise ValueError(f"unknown task source: {source!r}")
    return SafeProvider(inner, max_tasks)

"""Session counters shown in the debug panel and the exit summary."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class SessionStats:
    """Monotonic counters owned by the event loop.

    The render pipeline only reads them. ``last_error_code`` is an errno,
    0 meaning "no error".
    """

    resize_count: int = 0
    timeout_count: int = 0
    input_count: int = 0
    interrupt_count: int = 0
    provider_errors: int = 0
    last_error_code: int = 0

    @property
    def last_error(self) -> str:
        if not self.last_error_code:
            return "none"
        return f"{self.last_error_code} ({os.strerror(self.last_error_code)})"

    def summary(self) -> str:
        """Human-readable report printed after the terminal is restored."""
        lines = [
            "Session summary:",
            f"  {'Resizes':12s}  {self.resize_count}",
            f"  {'Timeouts':12s}  {self.timeout_count}",
            f"  {'Inputs':12s}  {self.input_count}",
            f"  {'Interrupts':12s}  {self.interrupt_count}",
        ]
        if self.provider_errors:
            lines.append(f"  {'Scan errors':12s}  {self.provider_errors}")
        if self.last_error_code:
            lines.append(f"  {'Last error':12s}  {self.last_error}")
        return "\n".join(lines)

"""Configuration loading for procexplorer.

Loads settings from TOML config files with sensible defaults.
Search order: explicit --config path → ~/.config/procexplorer/config.toml → defaults only.
"""

from __future__ import annotations

import sys
import tomllib
from pathlib import Path
from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "interval": 1.0,
    "source": "mock",
    "max_tasks": 1000,
    "show_debug": False,
    "colors": {
        "running": "green",
        "sleeping": "white",
        "disk_wait": "yellow",
        "zombie": "red",
        "stopped": "magenta",
        "unknown": "white",
    },
}

SOURCES = ("mock", "proc")

_DEFAULT_PATH = Path.home() / ".config" / "procexplorer" / "config.toml"


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Return a fresh config: *overlay* wins, tables are merged key by key.

    Nested tables are always copied, so the result never shares a dict with
    ``DEFAULT_CONFIG``.
    """
    merged = {k: dict(v) if isinstance(v, dict) else v for k, v in base.items()}
    for key, value in overlay.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def _fail(message: str) -> SystemExit:
    print(f"procexplorer: {message}", file=sys.stderr)
    return SystemExit(1)


def _read_toml(path: Path) -> dict[str, Any]:
    """Parse *path*; TOMLDecodeError propagates to the caller."""
    return tomllib.loads(path.read_text(encoding="utf-8"))


def validate_config(config: dict[str, Any]) -> dict[str, Any]:
    """Check value ranges that the event loop depends on.

    Raises:
        SystemExit: If a value is out of range or of the wrong type.
    """
    try:
        interval = float(config["interval"])
    except (TypeError, ValueError):
        raise _fail(f"interval must be a number, got {config['interval']!r}") from None
    if interval <= 0:
        raise _fail(f"interval must be positive, got {interval}")

    if config["source"] not in SOURCES:
        raise _fail(
            f"source must be one of {', '.join(SOURCES)}, got {config['source']!r}"
        )

    max_tasks = config["max_tasks"]
    if isinstance(max_tasks, bool) or not isinstance(max_tasks, int) or max_tasks < 1:
        raise _fail(f"max_tasks must be a positive integer, got {max_tasks!r}")

    config["interval"] = interval
    config["show_debug"] = bool(config["show_debug"])
    return config


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration, merging user TOML over defaults.

    An explicit *path* must exist and parse. A broken file at the default
    location only produces a warning and the defaults are used.

    Raises:
        SystemExit: If an explicit path is missing, unparsable or out of range.
    """
    user: dict[str, Any] = {}
    if path is not None:
        if not path.is_file():
            raise _fail(f"config file not found: {path}")
        try:
            user = _read_toml(path)
        except tomllib.TOMLDecodeError as e:
            raise _fail(f"invalid TOML in {path}: {e}") from e
    elif _DEFAULT_PATH.is_file():
        try:
            user = _read_toml(_DEFAULT_PATH)
        except tomllib.TOMLDecodeError:
            print(
                f"procexplorer: warning: ignoring invalid TOML in {_DEFAULT_PATH}",
                file=sys.stderr,
            )

    return validate_config(_deep_merge(DEFAULT_CONFIG, user))


def dump_default_config() -> str:
    """Return the default configuration as a TOML string."""
    lines = [
        "# procexplorer configuration",
        "# Place this file at ~/.config/procexplorer/config.toml",
        "",
        f"interval = {DEFAULT_CONFIG['interval']}",
        f'source = "{DEFAULT_CONFIG["source"]}"',
        f"max_tasks = {DEFAULT_CONFIG['max_tasks']}",
        f"show_debug = {str(DEFAULT_CONFIG['show_debug']).lower()}",
        "",
        "[colors]",
    ]
    for state, color in DEFAULT_CONFIG["colors"].items():
        lines.append(f'{state} = "{color}"')

    return "\n".join(lines) + "\n"

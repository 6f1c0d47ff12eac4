"""Logging configuration for SplitUI.

Quiet by default (WARNING). The level is resolved from, highest first:

    1. the explicit `level` argument
    2. SPLITUI_LOG_LEVEL (DEBUG, INFO, ... or a number)
    3. SPLITUI_DEBUG=true
    4. the --debug flag
    5. `debug: true` in the config file

With `persist=True` every session also writes a DEBUG log to
<data_dir>/logs/session_<timestamp>.log; older sessions beyond the newest
ten are removed.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

_DEBUG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"
_DEFAULT_FORMAT = "%(name)s: %(message)s"

# Clamped to WARNING even under --debug
_NOISY_LOGGERS = ("httpx", "httpcore", "anthropic", "asyncio", "uvicorn.access")

_MAX_LOG_SESSIONS = 10

_TRUTHY = ("true", "1", "yes")


def _parse_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    named = logging.getLevelNamesMapping().get(level.strip().upper())
    if named is not None:
        return named
    try:
        return int(level)
    except ValueError:
        return logging.WARNING


def _resolve_level(level: int | str | None, debug: bool) -> int:
    if level is not None:
        return _parse_level(level)
    if env_level := os.environ.get("SPLITUI_LOG_LEVEL"):
        return _parse_level(env_level)
    if os.environ.get("SPLITUI_DEBUG", "").lower() in _TRUTHY or debug:
        return logging.DEBUG
    return logging.WARNING


def _prune_sessions(log_dir: Path, keep: int) -> None:
    sessions = sorted(log_dir.glob("session_*.log"), key=lambda p: p.stat().st_mtime)
    for stale in sessions[: max(len(sessions) - keep, 0)]:
        stale.unlink(missing_ok=True)


def _session_handler(data_dir: Path) -> logging.Handler:
    """Open a fresh session log, making room for it first."""
    log_dir = data_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    _prune_sessions(log_dir, keep=_MAX_LOG_SESSIONS - 1)

    stamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    handler = logging.FileHandler(log_dir / f"session_{stamp}.log", mode="w", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_DEBUG_FORMAT))
    return handler


def configure_logging(
    *,
    debug: bool = False,
    level: int | str | None = None,
    stream: TextIO | None = None,
    persist: bool = False,
    config_debug: bool = False,
    data_dir: Path | None = None,
) -> int:
    """Configure root logging for the CLI and the proxy server.

    Args:
        debug: The --debug flag.
        level: Programmatic override ("INFO", logging.INFO, ...).
        stream: Console stream (default: stderr).
        persist: Also write a per-session DEBUG log file.
        config_debug: `debug` from the loaded config file.
        data_dir: Base directory for session logs (default: ./.splitui).

    Returns:
        The console log level in effect.
    """
    console_level = _resolve_level(level, debug or config_debug)

    console = logging.StreamHandler(stream or sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(
        logging.Formatter(_DEBUG_FORMAT if console_level <= logging.DEBUG else _DEFAULT_FORMAT)
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    # The file handler filters on its own; the root must let DEBUG through
    root.setLevel(logging.DEBUG if persist else console_level)

    if persist:
        try:
            root.addHandler(_session_handler(data_dir or Path.cwd() / ".splitui"))
        except OSError as e:
            sys.stderr.write(f"Warning: Could not enable persistent logging: {e}\n")

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging configured: level=%s persist=%s",
        logging.getLevelName(console_level),
        persist,
    )
    return console_level

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""User-facing logging helpers with optional colour and emoji support."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from functools import cache
from pathlib import Path
from typing import Final, Literal

from rich.console import Console
from rich.rule import Rule
from rich.text import Text

PACKAGE_LOGGER: Final[str] = "plex_inject"
DEBUG_FORMAT: Final[str] = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
DEBUG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"


def detect_tty() -> bool:
    """Return ``True`` when stdout appears to be backed by a terminal."""

    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


@cache
def get_console(*, color: bool, emoji: bool, tty: bool) -> Console:
    """Return a cached Rich console for the given presentation flags.

    Args:
        color: ``True`` when ANSI colour output should be enabled.
        emoji: ``True`` when Rich should render emoji glyphs.
        tty: Whether stdout was a terminal when the console was requested.

    Returns:
        Console: Console bound lazily to :data:`sys.stdout`.
    """

    color_system: Literal["auto"] | None = "auto" if color and tty else None
    return Console(
        color_system=color_system,
        force_terminal=tty,
        no_color=not (color and tty),
        emoji=emoji,
        highlight=False,
        soft_wrap=True,
    )


def emoji(symbol: str, enable: bool) -> str:
    """Return *symbol* when emoji output is enabled, otherwise blank."""

    return symbol if enable else ""


def timestamp() -> str:
    """Return the wall-clock prefix used on every console line."""

    return datetime.now().strftime(DEBUG_DATE_FORMAT)


def _print_line(msg: str, *, style: str | None, use_emoji: bool, use_color: bool | None) -> None:
    tty = detect_tty()
    color_enabled = tty if use_color is None else use_color
    console = get_console(color=color_enabled, emoji=use_emoji, tty=tty)
    text = Text(f"[{timestamp()}] {msg}")
    if style and color_enabled:
        text.stylize(style)
    console.print(text)


def section(title: str, *, use_color: bool) -> None:
    """Print a section header."""

    tty = detect_tty()
    console = get_console(color=use_color, emoji=True, tty=tty)
    if use_color and tty:
        console.print()
        console.print(Rule(title))
    else:
        console.print(f"\n--- {title} ---")


def info(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an informational message."""

    _print_line(f"{emoji('ℹ️ ', use_emoji)}INFO: {msg}", style="cyan", use_emoji=use_emoji, use_color=use_color)


def ok(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a success message."""

    _print_line(f"{emoji('✅ ', use_emoji)}{msg}", style="green", use_emoji=use_emoji, use_color=use_color)


def warn(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a warning message."""

    _print_line(f"{emoji('⚠️ ', use_emoji)}WARNING: {msg}", style="yellow", use_emoji=use_emoji, use_color=use_color)


def fail(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an error message."""

    _print_line(f"{emoji('❌ ', use_emoji)}ERROR: {msg}", style="red", use_emoji=use_emoji, use_color=use_color)


@dataclass(slots=True)
class Reporter:
    """Adapter around the console helpers that mirrors messages into ``logging``.

    Console output honours the emoji and colour preferences; every message is
    also recorded on the package logger so a debug log captures the full run.
    """

    use_emoji: bool = False
    use_color: bool | None = None
    _logger: logging.Logger = field(default_factory=lambda: logging.getLogger(PACKAGE_LOGGER))

    def section(self, title: str) -> None:
        """Render a section header."""

        section(title, use_color=detect_tty() if self.use_color is None else self.use_color)
        self._logger.debug("--- %s ---", title)

    def info(self, message: str) -> None:
        """Log an informational message."""

        info(message, use_emoji=self.use_emoji, use_color=self.use_color)
        self._logger.info(message)

    def ok(self, message: str) -> None:
        """Log a success message."""

        ok(message, use_emoji=self.use_emoji, use_color=self.use_color)
        self._logger.info(message)

    def warn(self, message: str) -> None:
        """Log a warning; execution continues."""

        warn(message, use_emoji=self.use_emoji, use_color=self.use_color)
        self._logger.warning(message)

    def fail(self, message: str) -> None:
        """Log a fatal error message."""

        fail(message, use_emoji=self.use_emoji, use_color=self.use_color)
        self._logger.error(message)

    def echo(self, message: str = "") -> None:
        """Write ``message`` to stdout without a timestamp prefix."""

        tty = detect_tty()
        get_console(color=bool(self.use_color) and tty, emoji=self.use_emoji, tty=tty).print(message, markup=False)


def attach_debug_log(path: Path) -> logging.Handler:
    """Route package debug records into *path* and return the installed handler.

    Args:
        path: Log file to append to; parent directories are created on demand.

    Returns:
        logging.Handler: Handler to pass to :func:`detach_debug_log` on shutdown.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(DEBUG_FORMAT, datefmt=DEBUG_DATE_FORMAT))
    handler.setLevel(logging.DEBUG)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    return handler


def detach_debug_log(handler: logging.Handler) -> None:
    """Remove and close a handler installed by :func:`attach_debug_log`."""

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.removeHandler(handler)
    handler.close()
    if not logger.handlers:
        logger.setLevel(logging.NOTSET)


__all__ = [
    "PACKAGE_LOGGER",
    "Reporter",
    "attach_debug_log",
    "detach_debug_log",
    "detect_tty",
    "emoji",
    "fail",
    "get_console",
    "info",
    "ok",
    "section",
    "warn",
]

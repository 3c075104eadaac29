# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared option declarations for the inject command."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

import typer

from ..config import MetadataScope

TARGET_OPTION = Annotated[
    str,
    typer.Option("--target", "-t", help="Target Plex container ID or name."),
]
BASE_OPTION = Annotated[
    str | None,
    typer.Option("--base", "-b", help="Base Plex container ID or name."),
]
DEBUG_OPTION = Annotated[
    bool,
    typer.Option("--debug", "-d", help="Write a verbose debug log."),
]
SECTIONS_OPTION = Annotated[
    str | None,
    typer.Option(
        "--sections",
        "-s",
        help="Comma-separated list positions to inject, skipping the prompt.",
    ),
]
ALL_OPTION = Annotated[
    bool,
    typer.Option("--all", help="Fully clone the base configuration, skipping the prompt."),
]
STOP_BASE_OPTION = Annotated[
    bool | None,
    typer.Option(
        "--stop-base/--no-stop-base",
        help="Stop the base container during extraction (prompted when omitted).",
    ),
]
METADATA_SCOPE_OPTION = Annotated[
    MetadataScope | None,
    typer.Option(
        "--metadata-scope",
        case_sensitive=False,
        help="Merge all base content rows, or only rows of the selected sections.",
    ),
]
EMOJI_OPTION = Annotated[
    bool,
    typer.Option("--emoji/--no-emoji", help="Toggle emoji output."),
]


@dataclass(slots=True)
class InjectCLIOptions:
    """Capture CLI input supplied to the inject command."""

    target: str
    base: str | None
    debug: bool
    sections: str | None
    select_all: bool
    stop_base: bool | None
    metadata_scope: MetadataScope | None
    emoji: bool

    @property
    def preselected(self) -> str | None:
        """Return the selection text given on the command line, if any."""

        if self.select_all:
            return "all"
        return self.sections


__all__ = [
    "ALL_OPTION",
    "BASE_OPTION",
    "DEBUG_OPTION",
    "EMOJI_OPTION",
    "METADATA_SCOPE_OPTION",
    "SECTIONS_OPTION",
    "STOP_BASE_OPTION",
    "TARGET_OPTION",
    "InjectCLIOptions",
]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Interactive adapters used by the inject command."""

from __future__ import annotations

from collections.abc import Sequence

import typer

from ..errors import InjectionError
from ..injector import SelectionProvider, StopBasePolicy
from ..logging import Reporter
from ..runtime import ContainerHandle
from ..sections import LibrarySection, Selection, parse_selection

SELECTION_PROMPT = "Enter numbers to inject, or 'all' for full clone"


def render_sections(sections: Sequence[LibrarySection], *, reporter: Reporter) -> None:
    """Print the numbered section list the selection positions refer to."""

    reporter.echo()
    for position, section in enumerate(sections, start=1):
        reporter.echo(f" {position}. {section.name} (ID {section.id})")
    reporter.echo()


def build_selection_provider(preselected: str | None, *, reporter: Reporter) -> SelectionProvider:
    """Return a provider that uses ``preselected`` or prompts the operator.

    The prompt blocks until the operator answers.
    """

    def _provide(sections: Sequence[LibrarySection]) -> Selection:
        if not sections:
            raise InjectionError("Base catalog has no library sections")
        render_sections(sections, reporter=reporter)
        raw = preselected if preselected is not None else typer.prompt(SELECTION_PROMPT)
        return parse_selection(raw, sections)

    return _provide


def build_stop_base_policy(stop_base: bool | None) -> bool | StopBasePolicy:
    """Return ``stop_base`` when given, else a policy asking the operator."""

    if stop_base is not None:
        return stop_base

    def _ask(handle: ContainerHandle) -> bool:
        return typer.confirm(f"Stop base container '{handle}'?", default=True)

    return _ask


__all__ = ["SELECTION_PROMPT", "build_selection_provider", "build_stop_base_policy", "render_sections"]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Runtime-agnostic container primitives."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from subprocess import CompletedProcess
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class ContainerHandle:
    """Resolved container identity threaded through every runtime call."""

    id: str
    name: str

    def __str__(self) -> str:
        if self.name and self.name != self.id:
            return f"{self.name} ({self.id[:12]})"
        return self.id[:12]


@runtime_checkable
class ContainerRuntime(Protocol):
    """Operations the injector needs from a container runtime."""

    def list_ids(self, name_filter: str) -> list[str]:
        """Return ids of all containers (running or not) matching ``name_filter``."""
        ...

    def inspect(self, ref: str) -> dict[str, Any] | None:
        """Return the inspect payload for ``ref`` or ``None`` when unknown."""
        ...

    def is_running(self, handle: ContainerHandle) -> bool:
        """Return whether the container is currently running."""
        ...

    def stop(self, handle: ContainerHandle) -> None:
        """Stop the container."""
        ...

    def start(self, handle: ContainerHandle) -> None:
        """Start the container."""
        ...

    def exec(self, handle: ContainerHandle, args: Sequence[str], *, check: bool = True) -> CompletedProcess[str]:
        """Run ``args`` inside the container and capture output."""
        ...

    def copy_from(self, handle: ContainerHandle, source: str, destination: Path) -> None:
        """Copy ``source`` out of the container into ``destination`` on the host."""
        ...


__all__ = ["ContainerHandle", "ContainerRuntime"]

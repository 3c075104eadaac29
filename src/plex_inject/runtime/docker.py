# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Docker CLI backed implementation of :class:`ContainerRuntime`."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from subprocess import CompletedProcess
from typing import Any

from ..constants import DOCKER_TIMEOUT
from ..errors import ContainerCommandError
from ..process_utils import SubprocessExecutionError, require_executable, run_command
from .base import ContainerHandle

LOGGER = logging.getLogger(__name__)


class DockerRuntime:
    """Drive containers through the ``docker`` command-line client."""

    def __init__(self, executable: str = "docker", *, timeout: float | None = DOCKER_TIMEOUT) -> None:
        """Resolve the docker client eagerly so a missing binary fails fast.

        Args:
            executable: Name or absolute path of the docker client.
            timeout: Seconds any single docker call may take.

        Raises:
            MissingDependencyError: If the client cannot be found on ``PATH``.
        """

        self._executable = require_executable(executable)
        self._timeout = timeout

    def _run(self, *args: str, check: bool = True) -> CompletedProcess[str]:
        command = [self._executable, *args]
        try:
            return run_command(command, check=check, capture_output=True, timeout=self._timeout)
        except SubprocessExecutionError as exc:
            detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
            raise ContainerCommandError(f"docker {args[0]} failed: {detail}") from exc

    def list_ids(self, name_filter: str) -> list[str]:
        """Return ids of containers whose name matches ``name_filter``."""

        completed = self._run("ps", "-aq", "--no-trunc", "--filter", f"name={name_filter}")
        return [line.strip() for line in completed.stdout.splitlines() if line.strip()]

    def inspect(self, ref: str) -> dict[str, Any] | None:
        """Return the first inspect document for ``ref`` or ``None`` if unknown."""

        completed = self._run("inspect", "--type", "container", ref, check=False)
        if completed.returncode != 0:
            LOGGER.debug("inspect miss ref=%s", ref)
            return None
        try:
            payload = json.loads(completed.stdout or "[]")
        except json.JSONDecodeError as exc:
            raise ContainerCommandError(f"docker inspect returned malformed output for {ref}: {exc}") from exc
        if not isinstance(payload, list) or not payload:
            return None
        document: dict[str, Any] = payload[0]
        return document

    def is_running(self, handle: ContainerHandle) -> bool:
        """Return ``True`` when docker reports the container as running."""

        document = self.inspect(handle.id)
        if document is None:
            return False
        return bool(document.get("State", {}).get("Running"))

    def stop(self, handle: ContainerHandle) -> None:
        """Stop ``handle`` and wait for it to exit."""

        self._run("stop", handle.id)

    def start(self, handle: ContainerHandle) -> None:
        """Start ``handle``; starting a running container is a no-op."""

        self._run("start", handle.id)

    def exec(self, handle: ContainerHandle, args: Sequence[str], *, check: bool = True) -> CompletedProcess[str]:
        """Run ``args`` inside ``handle`` and return the captured result."""

        return self._run("exec", handle.id, *args, check=check)

    def copy_from(self, handle: ContainerHandle, source: str, destination: Path) -> None:
        """Copy ``source`` from the container filesystem to ``destination``."""

        self._run("cp", f"{handle.id}:{source}", str(destination))


__all__ = ["DockerRuntime"]

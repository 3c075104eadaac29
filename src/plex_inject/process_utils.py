# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Safe wrappers around ``subprocess`` execution."""

from __future__ import annotations

import logging
import re
import shutil

# Bandit: subprocess usage is intentional; the wrapper passes argument lists
# directly and never enables ``shell=True``.
import subprocess  # nosec B404
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import MissingDependencyError

if TYPE_CHECKING:
    from subprocess import CompletedProcess as _CompletedProcess  # nosec B404

LOGGER = logging.getLogger(__name__)

_SECRET_PARAM = re.compile(r"(X-Plex-Token=)[^&\s]+")
TIMEOUT_RETURNCODE = 124


class SubprocessExecutionError(RuntimeError):
    """Raised when a subprocess exits with a non-zero status while ``check`` is true."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stdout: str | None,
        stderr: str | None,
    ) -> None:
        super().__init__(
            f"Command '{command[0]}' exited with status {returncode}. stderr: {stderr or '<none>'}",
        )
        self.command = tuple(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


def require_executable(name: str) -> str:
    """Return the absolute path of *name* or raise ``MissingDependencyError``."""

    resolved = shutil.which(name)
    if resolved is None:
        raise MissingDependencyError(f"{name} is required.")
    return resolved


def _normalize_args(args: Sequence[str]) -> list[str]:
    if not args:
        msg = "subprocess command requires at least one argument"
        raise ValueError(msg)

    head, *rest = args
    head_path = Path(head)
    if head_path.is_absolute():
        return [str(head_path), *rest]
    return [require_executable(head), *rest]


def run_command(
    args: Sequence[str],
    *,
    check: bool = True,
    capture_output: bool = False,
    timeout: float | None = None,
) -> _CompletedProcess[str]:
    """Execute *args* with stdin closed and text output.

    A command exceeding *timeout* is reported with return code 124, the
    convention of coreutils ``timeout``.
    """
    normalized = _normalize_args(args)
    LOGGER.debug("run command=%s", _SECRET_PARAM.sub(r"\1***", " ".join(normalized)))

    try:
        completed: _CompletedProcess[str] = subprocess.run(  # nosec B603
            normalized,
            check=False,
            capture_output=capture_output,
            text=True,
            timeout=timeout,
            stdin=subprocess.DEVNULL,
        )
    except subprocess.TimeoutExpired as exc:
        partial = exc.stdout.decode(errors="ignore") if isinstance(exc.stdout, bytes) else exc.stdout
        completed = subprocess.CompletedProcess(
            normalized,
            TIMEOUT_RETURNCODE,
            stdout=partial or "",
            stderr=f"Command timed out after {exc.timeout:.1f}s",
        )

    LOGGER.debug("exit returncode=%s", completed.returncode)
    if check and completed.returncode != 0:
        raise SubprocessExecutionError(normalized, completed.returncode, completed.stdout, completed.stderr)
    return completed


__all__ = ["SubprocessExecutionError", "require_executable", "run_command"]

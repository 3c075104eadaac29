# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Scratch workspace, container stop/start and file swap coordination."""

from __future__ import annotations

import logging
import os
import shutil
import signal
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from types import FrameType, TracebackType
from typing import Any

from .constants import (
    DEBUG_LOG_NAME,
    EXIT_FAILURE,
    PRESERVED_DEBUG_LOG_NAME,
    SQLITE_SIDECAR_SUFFIXES,
    WORKSPACE_PREFIX,
)
from .errors import FilesystemError, InjectionError
from .logging import Reporter, attach_debug_log, detach_debug_log
from .runtime import ContainerHandle, ContainerRuntime

LOGGER = logging.getLogger(__name__)

_STAGING_SUFFIX = ".plex-inject-new"
_RETIRED_SUFFIX = ".plex-inject-old"


@dataclass(frozen=True, slots=True)
class Ownership:
    """Numeric owner and group captured from a file."""

    uid: int
    gid: int

    def __str__(self) -> str:
        return f"{self.uid}:{self.gid}"


@dataclass(frozen=True, slots=True)
class Workspace:
    """Layout of the per-run scratch directory."""

    root: Path

    @property
    def base_dir(self) -> Path:
        """Directory receiving the base database and metadata trees."""

        return self.root / "base_db"

    @property
    def target_dir(self) -> Path:
        """Directory receiving the offline copy of the target catalog."""

        return self.root / "target_db"

    @property
    def debug_log(self) -> Path:
        """Location of the verbose run log."""

        return self.root / DEBUG_LOG_NAME


def capture_owner(path: Path) -> Ownership:
    """Return the numeric owner of ``path``."""

    stat_result = path.stat()
    return Ownership(uid=stat_result.st_uid, gid=stat_result.st_gid)


def restore_owner(owner: Ownership, *paths: Path) -> None:
    """Recursively reset ownership of ``paths`` to ``owner``.

    Symlinks are re-owned themselves rather than followed.
    """

    for path in paths:
        if not path.exists() and not path.is_symlink():
            continue
        os.chown(path, owner.uid, owner.gid, follow_symlinks=False)
        if not path.is_dir() or path.is_symlink():
            continue
        for directory, subdirs, files in os.walk(path):
            for name in (*subdirs, *files):
                os.chown(Path(directory) / name, owner.uid, owner.gid, follow_symlinks=False)
    LOGGER.debug("chown owner=%s paths=%s", owner, ", ".join(str(path) for path in paths))


def atomic_replace_file(source: Path, destination: Path) -> None:
    """Copy ``source`` next to ``destination`` and rename it into place.

    Stale SQLite ``-wal``/``-shm`` sidecars of ``destination`` are removed since
    they belong to the file being replaced.
    """

    staging = destination.with_name(destination.name + _STAGING_SUFFIX)
    shutil.copy2(source, staging)
    os.replace(staging, destination)
    for suffix in SQLITE_SIDECAR_SUFFIXES:
        destination.with_name(destination.name + suffix).unlink(missing_ok=True)


def replace_tree(source: Path, destination: Path) -> None:
    """Replace the directory ``destination`` with a copy of ``source``.

    The copy is staged beside ``destination`` and swapped in with two renames,
    so a failed copy leaves the original tree untouched.
    """

    staging = destination.with_name(destination.name + _STAGING_SUFFIX)
    retired = destination.with_name(destination.name + _RETIRED_SUFFIX)
    for leftover in (staging, retired):
        if leftover.exists():
            shutil.rmtree(leftover)
    shutil.copytree(source, staging, symlinks=True)
    if destination.exists():
        os.replace(destination, retired)
    os.replace(staging, destination)
    if retired.exists():
        shutil.rmtree(retired)


class LifecycleCoordinator:
    """Own the scratch workspace and the running state of both containers.

    Used as a context manager. On every exit path the target container is left
    running, the base container is restarted if this run stopped it, and the
    scratch workspace is deleted. ``SIGTERM`` is translated into ``SystemExit``
    for the duration so those guarantees also hold on external termination.
    """

    def __init__(
        self,
        runtime: ContainerRuntime,
        *,
        reporter: Reporter | None = None,
        debug: bool = False,
        log_destination: Path | None = None,
        workspace_parent: Path | None = None,
    ) -> None:
        self._runtime = runtime
        self._reporter = reporter or Reporter()
        self._debug = debug
        self._log_destination = log_destination
        self._workspace_parent = workspace_parent
        self._tempdir: tempfile.TemporaryDirectory[str] | None = None
        self._workspace: Workspace | None = None
        self._log_handler: logging.Handler | None = None
        self._previous_sigterm: Any = None
        self.target: ContainerHandle | None = None
        self.base: ContainerHandle | None = None
        self.base_stopped = False
        self.target_stopped = False

    @property
    def workspace(self) -> Workspace:
        """Return the active workspace; only valid inside the context."""

        if self._workspace is None:
            raise RuntimeError("workspace is only available inside the coordinator context")
        return self._workspace

    def __enter__(self) -> LifecycleCoordinator:
        try:
            self._tempdir = tempfile.TemporaryDirectory(prefix=WORKSPACE_PREFIX, dir=self._workspace_parent)
        except OSError as exc:
            raise FilesystemError(f"Cannot create scratch workspace: {exc}") from exc
        self._workspace = Workspace(root=Path(self._tempdir.name))
        try:
            self.workspace.base_dir.mkdir()
            self.workspace.target_dir.mkdir()
            if self._debug:
                self._log_handler = attach_debug_log(self.workspace.debug_log)
                LOGGER.debug("workspace root=%s", self.workspace.root)
        except BaseException as exc:
            self._cleanup_workspace()
            if isinstance(exc, OSError):
                raise FilesystemError(f"Cannot prepare scratch workspace: {exc}") from exc
            raise
        self._install_signal_handler()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        try:
            self._restore_target()
            if self.base_stopped:
                self.restart_base()
        finally:
            self._restore_signal_handler()
            self._cleanup_workspace()

    def track(self, *, target: ContainerHandle, base: ContainerHandle) -> None:
        """Register the resolved containers whose state this coordinator guards."""

        self.target = target
        self.base = base

    def stop_base(self) -> None:
        """Stop the base container for a consistent read; it is restarted on exit."""

        if self.base is None:
            raise RuntimeError("base container has not been tracked")
        self._reporter.info(f"Stopping base container {self.base}")
        self._runtime.stop(self.base)
        self.base_stopped = True

    def restart_base(self) -> None:
        """Start the base container again if this run stopped it."""

        if self.base is None or not self.base_stopped:
            return
        try:
            self._runtime.start(self.base)
        except InjectionError as exc:
            self._reporter.warn(f"Failed to restart base container: {exc}")
            return
        self.base_stopped = False

    @contextmanager
    def swap_window(self) -> Iterator[None]:
        """Stop the target for the duration of the block and start it afterwards."""

        if self.target is None:
            raise RuntimeError("target container has not been tracked")
        self._reporter.info(f"Stopping target container {self.target}")
        self._runtime.stop(self.target)
        self.target_stopped = True
        try:
            yield
        except BaseException:
            self._restore_target()
            raise
        self._reporter.info(f"Starting target container {self.target}")
        self._runtime.start(self.target)
        self.target_stopped = False

    def _restore_target(self) -> None:
        if self.target is None:
            return
        self._reporter.info(f"Ensuring target container {self.target} is running")
        try:
            if self.target_stopped or not self._runtime.is_running(self.target):
                self._runtime.start(self.target)
                self.target_stopped = False
        except InjectionError as exc:
            self._reporter.warn(f"Failed to restart target container: {exc}")

    def _cleanup_workspace(self) -> None:
        if self._tempdir is None:
            return
        self._reporter.info("Cleaning up temporary files")
        if self._log_handler is not None:
            detach_debug_log(self._log_handler)
            self._log_handler = None
            self._preserve_debug_log()
        self._tempdir.cleanup()
        self._tempdir = None
        self._workspace = None

    def _preserve_debug_log(self) -> None:
        source = self.workspace.debug_log
        if not source.exists():
            return
        destination_dir = self._log_destination or Path.cwd()
        destination = destination_dir / PRESERVED_DEBUG_LOG_NAME
        try:
            shutil.copyfile(source, destination)
        except OSError as exc:
            self._reporter.warn(f"Could not keep debug log: {exc}")
            return
        self._reporter.info(f"Debug log written to {destination}")

    def _install_signal_handler(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        self._previous_sigterm = signal.signal(signal.SIGTERM, self._handle_sigterm)

    def _restore_signal_handler(self) -> None:
        if self._previous_sigterm is None:
            return
        signal.signal(signal.SIGTERM, self._previous_sigterm)
        self._previous_sigterm = None

    def _handle_sigterm(self, signum: int, frame: FrameType | None) -> None:
        LOGGER.debug("signal received signum=%s", signum)
        raise SystemExit(EXIT_FAILURE)


__all__ = [
    "LifecycleCoordinator",
    "Ownership",
    "Workspace",
    "atomic_replace_file",
    "capture_owner",
    "replace_tree",
    "restore_owner",
]

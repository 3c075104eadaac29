# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Copy catalog and metadata trees into the scratch workspace."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from .config import InjectorConfig
from .errors import FilesystemError, MissingCatalogFileError
from .lifecycle import Workspace
from .logging import Reporter
from .resolver import ContainerResolver
from .runtime import ContainerHandle, ContainerRuntime

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BaseSnapshot:
    """Offline copy of the base database directory and metadata tree."""

    root: Path
    db_dir: Path
    meta_dir: Path
    catalog: Path


class CatalogExtractor:
    """Pull base and target catalogs out of their containers."""

    def __init__(
        self,
        runtime: ContainerRuntime,
        resolver: ContainerResolver,
        config: InjectorConfig,
        workspace: Workspace,
        *,
        reporter: Reporter | None = None,
    ) -> None:
        self._runtime = runtime
        self._resolver = resolver
        self._config = config
        self._workspace = workspace
        self._reporter = reporter or Reporter()

    def extract_base(self, handle: ContainerHandle) -> BaseSnapshot:
        """Copy the base database directory and metadata tree from the host mount.

        The base container does not need to be running; its configuration is
        read straight from the host side of the bind mount.

        Args:
            handle: Resolved base container.

        Returns:
            BaseSnapshot: Paths of the copied trees inside the workspace.

        Raises:
            MissingConfigMountError: If the base lacks a config bind mount.
            MissingCatalogFileError: If the base has no catalog database.
            FilesystemError: If the trees cannot be copied into the workspace.
        """

        config_root = self._resolver.config_path(handle)
        support = config_root / self._config.support_dir
        source_db = support / self._config.db_subdir
        source_meta = support / self._config.meta_subdir
        if not (source_db / self._config.catalog_filename).is_file():
            raise MissingCatalogFileError(f"Cannot locate library DB in base {handle}")

        dest = self._workspace.base_dir
        self._reporter.info(f"Extracting base config from {handle} -> {dest}")
        db_dir = dest / self._config.db_subdir
        meta_dir = dest / self._config.meta_subdir
        try:
            shutil.copytree(source_db, db_dir, symlinks=True, dirs_exist_ok=True)
            if source_meta.is_dir():
                shutil.copytree(source_meta, meta_dir, symlinks=True, dirs_exist_ok=True)
            else:
                self._reporter.warn(f"Base {handle} has no {self._config.meta_subdir} directory")
                meta_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(f"Cannot copy base config from {support}: {exc}") from exc
        LOGGER.debug("base snapshot db=%s meta=%s", db_dir, meta_dir)
        return BaseSnapshot(
            root=dest,
            db_dir=db_dir,
            meta_dir=meta_dir,
            catalog=db_dir / self._config.catalog_filename,
        )

    def extract_target_db(self, handle: ContainerHandle) -> Path:
        """Copy the live target catalog out of the running container.

        Args:
            handle: Resolved target container; it is started first if stopped.

        Returns:
            Path: Offline copy of the target catalog inside the workspace.

        Raises:
            MissingCatalogFileError: If the bounded search finds no file or
                more than one.
        """

        if not self._runtime.is_running(handle):
            self._reporter.info(f"Target {handle} is not running; starting it")
            self._runtime.start(handle)

        dest = self._workspace.target_dir
        self._reporter.info(f"Extracting target library DB -> {dest}")
        search_dir = str(self._config.container_db_dir)
        completed = self._runtime.exec(
            handle,
            [
                "find",
                search_dir,
                "-maxdepth",
                "1",
                "-type",
                "f",
                "-name",
                self._config.catalog_filename,
            ],
            check=False,
        )
        matches = [line.strip() for line in (completed.stdout or "").splitlines() if line.strip()]
        if len(matches) != 1:
            detail = "none found" if not matches else f"{len(matches)} candidates"
            raise MissingCatalogFileError(f"Cannot locate library DB in target {handle} ({detail})")

        self._runtime.copy_from(handle, matches[0], dest)
        local = dest / self._config.catalog_filename
        if not local.is_file():
            raise MissingCatalogFileError(f"Copy of {matches[0]} from {handle} produced no file")
        return local


__all__ = ["BaseSnapshot", "CatalogExtractor"]

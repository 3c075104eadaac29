# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Map logical container names onto runtime handles and host config paths."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from .config import InjectorConfig
from .errors import MissingConfigMountError, UnresolvableContainerError
from .runtime import ContainerHandle, ContainerRuntime

LOGGER = logging.getLogger(__name__)


class ContainerResolver:
    """Resolve container references once so later calls use a stable id."""

    def __init__(self, runtime: ContainerRuntime, config: InjectorConfig) -> None:
        self._runtime = runtime
        self._config = config

    def resolve(self, name: str) -> ContainerHandle:
        """Return a handle for ``name``.

        Exact name matches win, then a unique partial match, then ``name`` is
        treated as a container id.

        Args:
            name: Container name, name fragment or id supplied by the operator.

        Returns:
            ContainerHandle: Handle carrying the full container id.

        Raises:
            UnresolvableContainerError: If nothing matches or a partial match is ambiguous.
        """

        exact = self._runtime.list_ids(f"^{re.escape(name)}$")
        if len(exact) == 1:
            LOGGER.debug("resolved exact name=%s id=%s", name, exact[0])
            return ContainerHandle(id=exact[0], name=name)

        partial = self._runtime.list_ids(name)
        if len(partial) == 1:
            LOGGER.debug("resolved partial name=%s id=%s", name, partial[0])
            details = self._runtime.inspect(partial[0]) or {}
            return ContainerHandle(id=partial[0], name=str(details.get("Name") or name).lstrip("/"))

        document = self._runtime.inspect(name)
        if document is not None:
            container_id = str(document.get("Id") or name)
            display = str(document.get("Name") or name).lstrip("/")
            LOGGER.debug("resolved id ref=%s id=%s", name, container_id)
            return ContainerHandle(id=container_id, name=display)

        if len(partial) > 1:
            raise UnresolvableContainerError(
                f"Container name '{name}' is ambiguous ({len(partial)} matches)"
            )
        raise UnresolvableContainerError(f"Cannot resolve container '{name}'")

    def config_path(self, handle: ContainerHandle) -> Path:
        """Return the host directory bound to the container's config mount.

        Raises:
            MissingConfigMountError: If no mount targets the config destination or
                its source is not an existing directory.
        """

        document = self._runtime.inspect(handle.id) or {}
        for mount in document.get("Mounts") or ():
            if mount.get("Destination") != self._config.config_mount:
                continue
            source = mount.get("Source")
            if source and Path(source).is_dir():
                return Path(source)
        raise MissingConfigMountError(
            f"Cannot get config path for {handle}: no {self._config.config_mount} bind mount"
        )


__all__ = ["ContainerResolver"]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Immutable configuration for a single injection run."""

from __future__ import annotations

import os
from collections.abc import Mapping
from enum import StrEnum
from pathlib import PurePosixPath
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import (
    API_BASE_URL,
    CATALOG_FILENAME,
    CONFIG_MOUNT,
    CONTENT_TABLES,
    DB_SUBDIR,
    DEFAULT_BASE_CONTAINER,
    DOCKER_TIMEOUT,
    ENV_PREFIX,
    META_SUBDIR,
    SUPPORT_DIR,
    TOKEN_FILENAME,
)


class ConfigError(Exception):
    """Raised when configuration input is invalid."""


class MetadataScope(StrEnum):
    """How much of the base content tables a partial merge imports."""

    ALL = "all"
    SECTIONS = "sections"


_ENV_FIELDS: Final[dict[str, str]] = {
    "BASE_CONTAINER": "base_container",
    "CONFIG_MOUNT": "config_mount",
    "API_BASE_URL": "api_base_url",
    "DOCKER": "docker_executable",
    "DOCKER_TIMEOUT": "docker_timeout",
    "METADATA_SCOPE": "metadata_scope",
    "CONTENT_TABLES": "content_tables",
}


class InjectorConfig(BaseModel):
    """Settings shared by every component of an injection run."""

    model_config = ConfigDict(frozen=True)

    base_container: str = DEFAULT_BASE_CONTAINER
    config_mount: str = CONFIG_MOUNT
    support_dir: str = SUPPORT_DIR
    db_subdir: str = DB_SUBDIR
    meta_subdir: str = META_SUBDIR
    catalog_filename: str = CATALOG_FILENAME
    token_filename: str = TOKEN_FILENAME
    api_base_url: str = API_BASE_URL
    docker_executable: str = "docker"
    docker_timeout: float = Field(default=DOCKER_TIMEOUT, gt=0)
    metadata_scope: MetadataScope = MetadataScope.ALL
    content_tables: tuple[str, ...] = Field(default=CONTENT_TABLES)
    debug: bool = False

    @field_validator("content_tables", mode="before")
    @classmethod
    def _split_tables(cls, value: object) -> object:
        if isinstance(value, str):
            return tuple(part.strip() for part in value.split(",") if part.strip())
        return value

    @field_validator("content_tables")
    @classmethod
    def _check_identifiers(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for table in value:
            if not table.replace("_", "").isalnum():
                raise ValueError(f"invalid table name: {table!r}")
        return value

    @property
    def container_db_dir(self) -> PurePosixPath:
        """Return the catalog database directory as seen inside the container."""

        return PurePosixPath(self.config_mount) / self.support_dir / self.db_subdir

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: object,
    ) -> InjectorConfig:
        """Build a configuration from ``PLEX_INJECT_*`` variables and overrides.

        Args:
            environ: Environment mapping to read; defaults to :data:`os.environ`.
            **overrides: Explicit values (typically CLI options) taking precedence
                over the environment. ``None`` values are ignored.

        Returns:
            InjectorConfig: Frozen configuration instance.

        Raises:
            ConfigError: If a value fails validation.
        """

        source = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for suffix, field_name in _ENV_FIELDS.items():
            raw = source.get(f"{ENV_PREFIX}{suffix}")
            if raw:
                values[field_name] = raw
        values.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc


__all__ = ["ConfigError", "InjectorConfig", "MetadataScope"]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for the frozen injector configuration."""

from __future__ import annotations

from pathlib import PurePosixPath

import pytest
from pydantic import ValidationError

from plex_inject.config import ConfigError, InjectorConfig, MetadataScope
from plex_inject.constants import CONTENT_TABLES, DEFAULT_BASE_CONTAINER


def test_defaults_describe_plex_layout() -> None:
    config = InjectorConfig()

    assert config.base_container == DEFAULT_BASE_CONTAINER
    assert config.content_tables == CONTENT_TABLES
    assert config.metadata_scope is MetadataScope.ALL
    assert config.container_db_dir == PurePosixPath(
        "/config/Library/Application Support/Plex Media Server/Plug-in Support/Databases"
    )


def test_config_is_immutable() -> None:
    config = InjectorConfig()

    with pytest.raises(ValidationError):
        config.base_container = "other"  # type: ignore[misc]


def test_from_env_reads_prefixed_variables() -> None:
    config = InjectorConfig.from_env(
        {
            "PLEX_INJECT_BASE_CONTAINER": "golden",
            "PLEX_INJECT_METADATA_SCOPE": "sections",
            "PLEX_INJECT_CONTENT_TABLES": "metadata_items, media_parts",
            "PLEX_INJECT_DOCKER_TIMEOUT": "45",
            "UNRELATED": "x",
        }
    )

    assert config.base_container == "golden"
    assert config.metadata_scope is MetadataScope.SECTIONS
    assert config.content_tables == ("metadata_items", "media_parts")
    assert config.docker_timeout == 45.0


def test_overrides_take_precedence_and_none_is_ignored() -> None:
    config = InjectorConfig.from_env(
        {"PLEX_INJECT_BASE_CONTAINER": "golden"},
        base_container="cli-base",
        debug=None,
    )

    assert config.base_container == "cli-base"
    assert config.debug is False


@pytest.mark.parametrize(
    "environ",
    [
        {"PLEX_INJECT_METADATA_SCOPE": "everything"},
        {"PLEX_INJECT_CONTENT_TABLES": "metadata_items; DROP TABLE x"},
        {"PLEX_INJECT_DOCKER_TIMEOUT": "0"},
    ],
)
def test_invalid_values_raise_config_error(environ: dict[str, str]) -> None:
    with pytest.raises(ConfigError):
        InjectorConfig.from_env(environ)

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared constants describing the Plex configuration layout."""

from __future__ import annotations

from typing import Final

DEFAULT_BASE_CONTAINER: Final[str] = "base_image_container_name"
CONFIG_MOUNT: Final[str] = "/config"
SUPPORT_DIR: Final[str] = "Library/Application Support/Plex Media Server"
DB_SUBDIR: Final[str] = "Plug-in Support/Databases"
META_SUBDIR: Final[str] = "Metadata"
CATALOG_FILENAME: Final[str] = "com.plexapp.plugins.library.db"
TOKEN_FILENAME: Final[str] = "plex.token"
PREFERENCES_FILENAME: Final[str] = "Preferences.xml"
PREFERENCES_TOKEN_ATTR: Final[str] = "PlexOnlineToken"
API_BASE_URL: Final[str] = "http://127.0.0.1:32400"
DOCKER_TIMEOUT: Final[float] = 300.0

SECTIONS_TABLE: Final[str] = "library_sections"
LOCATIONS_TABLE: Final[str] = "section_locations"
CONTENT_TABLES: Final[tuple[str, ...]] = ("metadata_items", "metadata_parts")

SQLITE_SIDECAR_SUFFIXES: Final[tuple[str, ...]] = ("-wal", "-shm")

WORKSPACE_PREFIX: Final[str] = "plex_inject_"
DEBUG_LOG_NAME: Final[str] = "debug.log"
PRESERVED_DEBUG_LOG_NAME: Final[str] = "plex-inject-debug.log"

ENV_PREFIX: Final[str] = "PLEX_INJECT_"

EXIT_FAILURE: Final[int] = 1

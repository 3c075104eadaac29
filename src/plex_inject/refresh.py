# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Ask the target server to rescan the sections that changed."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Final
from urllib.parse import quote

from .config import InjectorConfig
from .constants import PREFERENCES_FILENAME, PREFERENCES_TOKEN_ATTR
from .errors import InjectionError, MissingAuthTokenError
from .logging import Reporter
from .runtime import ContainerHandle, ContainerRuntime
from .sections import Selection, SelectionAll

LOGGER = logging.getLogger(__name__)

ALL_SECTIONS_KEY: Final[str] = "all"


def read_token(support_dir: Path, config: InjectorConfig) -> str:
    """Return the access token stored in the target's configuration.

    ``plex.token`` is preferred; the ``PlexOnlineToken`` attribute of
    ``Preferences.xml`` is used when the token file is absent or empty.

    Raises:
        MissingAuthTokenError: If neither source yields a token.
    """

    token_file = support_dir / config.token_filename
    if token_file.is_file():
        token = token_file.read_text(encoding="utf-8").strip()
        if token:
            return token

    preferences = support_dir / PREFERENCES_FILENAME
    if preferences.is_file():
        try:
            root = ET.parse(preferences).getroot()
        except ET.ParseError as exc:
            LOGGER.debug("unparseable preferences path=%s error=%s", preferences, exc)
        else:
            token = (root.get(PREFERENCES_TOKEN_ATTR) or "").strip()
            if token:
                return token

    raise MissingAuthTokenError("No Plex token found; skipping API refresh")


def refresh_url(config: InjectorConfig, section_key: str, token: str) -> str:
    """Return the local rescan endpoint for ``section_key``."""

    base = config.api_base_url.rstrip("/")
    return f"{base}/library/sections/{section_key}/refresh?X-Plex-Token={quote(token, safe='')}"


class RefreshTrigger:
    """Issue incremental rescan calls through the target container."""

    def __init__(
        self,
        runtime: ContainerRuntime,
        config: InjectorConfig,
        *,
        reporter: Reporter | None = None,
    ) -> None:
        self._runtime = runtime
        self._config = config
        self._reporter = reporter or Reporter()

    def refresh(self, handle: ContainerHandle, support_dir: Path, selection: Selection) -> list[str]:
        """Request a rescan of the sections touched by ``selection``.

        A full clone triggers one all-sections call; otherwise one call per
        selected id. Missing tokens and failed calls are reported as warnings.

        Args:
            handle: Running target container.
            support_dir: Host path of the target's Plex support directory.
            selection: Selection that was applied.

        Returns:
            list[str]: Section keys whose refresh call succeeded.
        """

        try:
            token = read_token(support_dir, self._config)
        except MissingAuthTokenError as exc:
            self._reporter.warn(str(exc))
            return []

        if isinstance(selection, SelectionAll):
            keys = [ALL_SECTIONS_KEY]
        else:
            keys = [str(section_id) for section_id in selection.ordered]

        refreshed: list[str] = []
        for key in keys:
            label = "all library sections" if key == ALL_SECTIONS_KEY else f"section ID {key}"
            self._reporter.info(f"Refreshing {label} via Plex API")
            url = refresh_url(self._config, key, token)
            try:
                completed = self._runtime.exec(
                    handle,
                    ["curl", "-s", "-f", "-X", "POST", url],
                    check=False,
                )
            except InjectionError as exc:
                self._reporter.warn(f"Refresh of {label} failed: {exc}")
                continue
            if completed.returncode != 0:
                self._reporter.warn(f"Refresh of {label} failed (curl exit {completed.returncode})")
                continue
            refreshed.append(key)
        return refreshed


__all__ = ["ALL_SECTIONS_KEY", "RefreshTrigger", "read_token", "refresh_url"]

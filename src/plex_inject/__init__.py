# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Selective Plex catalog injection between containerised server instances."""

from __future__ import annotations

import logging
from importlib import metadata

__all__ = ["__version__"]

# Console output is rendered by the reporter; records only reach a handler under -d.
logging.getLogger(__name__).addHandler(logging.NullHandler())

try:
    __version__ = metadata.version("plex-inject")
except metadata.PackageNotFoundError:  # pragma: no cover - local development fallback
    __version__ = "0.0.0"

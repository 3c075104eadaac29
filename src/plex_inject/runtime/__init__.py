# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Container runtime adapters."""

from __future__ import annotations

from .base import ContainerHandle, ContainerRuntime
from .docker import DockerRuntime

__all__ = ["ContainerHandle", "ContainerRuntime", "DockerRuntime"]

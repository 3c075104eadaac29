# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy raised by the injection workflow."""

from __future__ import annotations

from .constants import EXIT_FAILURE


class InjectionError(RuntimeError):
    """Base error for fatal injection failures."""

    def __init__(self, message: str, *, exit_code: int = EXIT_FAILURE) -> None:
        """Initialise the error with a message and exit code.

        Args:
            message: Human-readable error message shown to the operator.
            exit_code: Exit status associated with the failure.
        """

        super().__init__(message)
        self.exit_code = exit_code


class MissingDependencyError(InjectionError):
    """Raised when a required external executable is not on ``PATH``."""


class UnresolvableContainerError(InjectionError):
    """Raised when a container name matches nothing (or too much)."""


class MissingConfigMountError(InjectionError):
    """Raised when a container lacks the expected configuration bind mount."""


class MissingCatalogFileError(InjectionError):
    """Raised when the catalog database cannot be located unambiguously."""


class MergeStatementError(InjectionError):
    """Raised when a relational statement fails during a merge."""


class EmptySelectionError(InjectionError):
    """Raised when the operator's selection resolves to no sections."""


class ContainerCommandError(InjectionError):
    """Raised when a container runtime command exits unsuccessfully."""


class FilesystemError(InjectionError):
    """Raised when copying, swapping or re-owning configuration files fails."""


class MissingAuthTokenError(InjectionError):
    """Raised when no stored access token exists; callers treat it as a warning."""


__all__ = [
    "ContainerCommandError",
    "EmptySelectionError",
    "FilesystemError",
    "InjectionError",
    "MergeStatementError",
    "MissingAuthTokenError",
    "MissingCatalogFileError",
    "MissingConfigMountError",
    "MissingDependencyError",
    "UnresolvableContainerError",
]

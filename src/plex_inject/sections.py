# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Read library sections from a catalog and turn operator input into a selection."""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path
from typing import Final, TypeAlias

from .constants import LOCATIONS_TABLE, SECTIONS_TABLE
from .errors import EmptySelectionError, MergeStatementError, MissingCatalogFileError

ALL_KEYWORD: Final[str] = "all"
_TYPE_COLUMNS: Final[tuple[str, ...]] = ("section_type", "scanner", "agent")


@dataclass(frozen=True, slots=True)
class LibrarySection:
    """A top-level content collection in a catalog."""

    id: int
    name: str
    section_type: str | None = None
    locations: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SelectionAll:
    """Operator asked for every section: a full clone."""


@dataclass(frozen=True, slots=True)
class SelectionSet:
    """Operator picked an explicit set of base section ids."""

    ids: frozenset[int]

    @property
    def ordered(self) -> tuple[int, ...]:
        """Return the selected ids in ascending order."""

        return tuple(sorted(self.ids))


Selection: TypeAlias = SelectionAll | SelectionSet


def _open_readonly(catalog: Path) -> sqlite3.Connection:
    if not catalog.is_file():
        raise MissingCatalogFileError(f"Catalog database not found: {catalog}")
    return sqlite3.connect(f"{catalog.resolve().as_uri()}?mode=ro", uri=True)


def _columns(conn: sqlite3.Connection, table: str) -> list[str]:
    return [str(row[1]) for row in conn.execute(f'PRAGMA table_info("{table}")')]


def list_sections(catalog: Path) -> list[LibrarySection]:
    """Return the sections of ``catalog`` ordered by id ascending.

    Args:
        catalog: Path to an offline catalog database.

    Returns:
        list[LibrarySection]: Sections with their location paths attached.

    Raises:
        MissingCatalogFileError: If ``catalog`` does not exist.
        MergeStatementError: If the catalog cannot be queried.
    """

    try:
        with closing(_open_readonly(catalog)) as conn:
            section_columns = _columns(conn, SECTIONS_TABLE)
            type_column = next((name for name in _TYPE_COLUMNS if name in section_columns), None)
            type_expr = f'"{type_column}"' if type_column else "NULL"
            rows = conn.execute(
                f'SELECT id, name, {type_expr} FROM "{SECTIONS_TABLE}" ORDER BY id'
            ).fetchall()

            locations: dict[int, list[str]] = {}
            if "root_path" in _columns(conn, LOCATIONS_TABLE):
                for section_id, root_path in conn.execute(
                    f'SELECT library_section_id, root_path FROM "{LOCATIONS_TABLE}" ORDER BY id'
                ):
                    locations.setdefault(int(section_id), []).append(str(root_path))
    except sqlite3.Error as exc:
        raise MergeStatementError(f"Cannot read sections from {catalog.name}: {exc}") from exc

    return [
        LibrarySection(
            id=int(section_id),
            name=str(name),
            section_type=None if section_type is None else str(section_type),
            locations=tuple(locations.get(int(section_id), ())),
        )
        for section_id, name, section_type in rows
    ]


def parse_selection(raw: str, sections: Sequence[LibrarySection]) -> Selection:
    """Convert operator input into a selection.

    ``"all"`` (any case) selects a full clone. Anything else is read as
    comma-separated 1-based positions into ``sections`` as displayed; tokens
    that do not name a valid position are dropped.

    Raises:
        EmptySelectionError: If no token maps to a section.
    """

    text = raw.strip()
    if text.lower() == ALL_KEYWORD:
        return SelectionAll()

    picked: set[int] = set()
    for token in text.split(","):
        token = token.strip()
        if not (token.isascii() and token.isdigit()):
            continue
        position = int(token)
        if 1 <= position <= len(sections):
            picked.add(sections[position - 1].id)

    if not picked:
        raise EmptySelectionError(f"No valid sections selected from input {raw!r}")
    return SelectionSet(ids=frozenset(picked))


__all__ = [
    "ALL_KEYWORD",
    "LibrarySection",
    "Selection",
    "SelectionAll",
    "SelectionSet",
    "list_sections",
    "parse_selection",
]

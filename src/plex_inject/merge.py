# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Full-clone and partial section merge between offline catalog copies."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable, Sequence
from contextlib import closing
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Final

from .config import InjectorConfig, MetadataScope
from .constants import LOCATIONS_TABLE, SECTIONS_TABLE
from .errors import FilesystemError, MergeStatementError, MissingCatalogFileError
from .extract import BaseSnapshot
from .lifecycle import LifecycleCoordinator, atomic_replace_file, capture_owner, replace_tree, restore_owner
from .logging import Reporter
from .sections import Selection, SelectionAll, SelectionSet

LOGGER = logging.getLogger(__name__)

BASE_ALIAS: Final[str] = "base"
SECTION_KEY: Final[str] = "library_section_id"
ITEM_KEY: Final[str] = "metadata_item_id"
ITEMS_TABLE: Final[str] = "metadata_items"


class MergeState(StrEnum):
    """Progress of a merge run."""

    AWAITING_SELECTION = "awaiting_selection"
    FULL_CLONE = "full_clone"
    PARTIAL_MERGE = "partial_merge"
    DONE = "done"
    FAILED = "failed"


@dataclass(slots=True)
class MergeReport:
    """Row counts produced by :func:`merge_sections`."""

    sections: tuple[int, ...] = ()
    locations: int = 0
    content_rows: dict[str, int] = field(default_factory=dict)
    unscoped_tables: list[str] = field(default_factory=list)


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def _table_columns(conn: sqlite3.Connection, schema: str, table: str) -> list[str]:
    return [str(row[1]) for row in conn.execute(f"PRAGMA {schema}.table_info({_quote(table)})")]


def _shared_columns(conn: sqlite3.Connection, table: str) -> list[str]:
    """Return columns of ``table`` present in both catalogs, in target order."""

    target_columns = _table_columns(conn, "main", table)
    base_columns = set(_table_columns(conn, BASE_ALIAS, table))
    if not target_columns or not base_columns:
        raise sqlite3.OperationalError(f"no such table: {table}")
    return [column for column in target_columns if column in base_columns]


def _copy_rows(
    conn: sqlite3.Connection,
    table: str,
    *,
    where: str = "",
    params: Sequence[object] = (),
    or_ignore: bool = False,
) -> int:
    columns = ", ".join(_quote(column) for column in _shared_columns(conn, table))
    verb = "INSERT OR IGNORE" if or_ignore else "INSERT"
    statement = (
        f"{verb} INTO main.{_quote(table)} ({columns}) "
        f"SELECT {columns} FROM {BASE_ALIAS}.{_quote(table)}"
    )
    if where:
        statement = f"{statement} WHERE {where}"
    LOGGER.debug("sql=%s params=%s", statement, list(params))
    cursor = conn.execute(statement, tuple(params))
    return max(cursor.rowcount, 0)


def _content_filter(
    conn: sqlite3.Connection,
    table: str,
    section_ids: Sequence[int],
) -> tuple[str, list[object]] | None:
    """Return a WHERE clause scoping ``table`` to ``section_ids`` if it can be scoped."""

    placeholders = ", ".join("?" for _ in section_ids)
    columns = _table_columns(conn, BASE_ALIAS, table)
    if SECTION_KEY in columns:
        return f"{_quote(SECTION_KEY)} IN ({placeholders})", list(section_ids)
    if ITEM_KEY in columns and SECTION_KEY in _table_columns(conn, BASE_ALIAS, ITEMS_TABLE):
        clause = (
            f"{_quote(ITEM_KEY)} IN (SELECT id FROM {BASE_ALIAS}.{_quote(ITEMS_TABLE)} "
            f"WHERE {_quote(SECTION_KEY)} IN ({placeholders}))"
        )
        return clause, list(section_ids)
    return None


def merge_sections(
    target_catalog: Path,
    base_catalog: Path,
    section_ids: Iterable[int],
    *,
    content_tables: Sequence[str],
    scope: MetadataScope = MetadataScope.ALL,
) -> MergeReport:
    """Rewrite the offline ``target_catalog`` so it carries exactly ``section_ids``.

    Runs inside a single transaction with ``base_catalog`` attached:

    1. every ``section_locations`` and ``library_sections`` row is deleted;
    2. each selected section and its locations are copied from base;
    3. each of ``content_tables`` is merged with ``INSERT OR IGNORE``. With
       :attr:`MetadataScope.ALL` every base row is offered, so content unrelated
       to the selected sections can be imported. :attr:`MetadataScope.SECTIONS`
       restricts rows through ``library_section_id`` or ``metadata_item_id``.

    Only columns present in both catalogs are copied.

    Args:
        target_catalog: Offline copy of the target catalog, modified in place.
        base_catalog: Base catalog, attached read-only in intent.
        section_ids: Base section ids to carry over.
        content_tables: Content tables merged in step 3.
        scope: How much of each content table to import.

    Returns:
        MergeReport: Counts of copied rows.

    Raises:
        MergeStatementError: If any statement fails; the transaction is rolled
            back and ``target_catalog`` is left as it was.
    """

    for catalog in (target_catalog, base_catalog):
        if not catalog.is_file():
            raise MissingCatalogFileError(f"Catalog database not found: {catalog}")

    ordered = tuple(sorted(set(section_ids)))
    report = MergeReport(sections=ordered)
    with closing(sqlite3.connect(target_catalog, isolation_level=None)) as conn:
        try:
            conn.execute("PRAGMA foreign_keys = OFF")
            conn.execute(f"ATTACH DATABASE ? AS {BASE_ALIAS}", (str(base_catalog),))
            conn.execute("BEGIN IMMEDIATE")
            conn.execute(f"DELETE FROM main.{_quote(LOCATIONS_TABLE)}")
            conn.execute(f"DELETE FROM main.{_quote(SECTIONS_TABLE)}")

            for section_id in ordered:
                _copy_rows(conn, SECTIONS_TABLE, where="id = ?", params=(section_id,))
                report.locations += _copy_rows(
                    conn,
                    LOCATIONS_TABLE,
                    where=f"{_quote(SECTION_KEY)} = ?",
                    params=(section_id,),
                )

            for table in content_tables:
                where, params = "", []
                if scope is MetadataScope.SECTIONS:
                    scoped = _content_filter(conn, table, ordered)
                    if scoped is None:
                        report.unscoped_tables.append(table)
                    else:
                        where, params = scoped
                report.content_rows[table] = _copy_rows(
                    conn,
                    table,
                    where=where,
                    params=params,
                    or_ignore=True,
                )

            conn.execute("COMMIT")
        except sqlite3.Error as exc:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise MergeStatementError(f"Merge statement failed: {exc}") from exc
        finally:
            try:
                conn.execute(f"DETACH DATABASE {BASE_ALIAS}")
            except sqlite3.Error as detach_error:
                LOGGER.debug("detach failed: %s", detach_error)
    return report


class MergeEngine:
    """Apply a selection to the target instance.

    A full clone replaces the target's database directory and metadata tree
    with base's. A partial merge rewrites an offline copy of the target
    catalog with :func:`merge_sections` and swaps it onto the live path while
    the target container is stopped.
    """

    def __init__(
        self,
        config: InjectorConfig,
        coordinator: LifecycleCoordinator,
        *,
        reporter: Reporter | None = None,
    ) -> None:
        self._config = config
        self._coordinator = coordinator
        self._reporter = reporter or Reporter()
        self.state = MergeState.AWAITING_SELECTION

    def run(
        self,
        selection: Selection,
        *,
        base: BaseSnapshot,
        target_catalog: Path,
        target_config_root: Path,
    ) -> MergeReport | None:
        """Dispatch ``selection`` to a full clone or a partial merge.

        Returns:
            MergeReport | None: Row counts for a partial merge, ``None`` for a clone.
        """

        if self.state is not MergeState.AWAITING_SELECTION:
            raise RuntimeError(f"merge engine already ran (state={self.state})")
        try:
            if isinstance(selection, SelectionAll):
                self.state = MergeState.FULL_CLONE
                self.full_clone(base, target_config_root)
                report = None
            else:
                self.state = MergeState.PARTIAL_MERGE
                report = self.partial_merge(selection, base, target_catalog, target_config_root)
        except BaseException:
            self.state = MergeState.FAILED
            raise
        self.state = MergeState.DONE
        return report

    def _live_paths(self, target_config_root: Path) -> tuple[Path, Path, Path]:
        support = target_config_root / self._config.support_dir
        db_dir = support / self._config.db_subdir
        live_catalog = db_dir / self._config.catalog_filename
        if not live_catalog.is_file():
            raise MissingCatalogFileError(f"Cannot locate host DB dir under {support}")
        return db_dir, support / self._config.meta_subdir, live_catalog

    def full_clone(self, base: BaseSnapshot, target_config_root: Path) -> None:
        """Replace the target's database directory and metadata tree with base's."""

        db_dir, meta_dir, live_catalog = self._live_paths(target_config_root)
        owner = capture_owner(live_catalog)
        self._reporter.info("Performing full clone of config...")
        with self._coordinator.swap_window():
            try:
                replace_tree(base.db_dir, db_dir)
                replace_tree(base.meta_dir, meta_dir)
                restore_owner(owner, db_dir, meta_dir)
            except OSError as exc:
                raise FilesystemError(f"Full clone into {db_dir.parent} failed: {exc}") from exc
        self._reporter.ok("Full clone complete. Plex will start with preloaded library.")

    def partial_merge(
        self,
        selection: SelectionSet,
        base: BaseSnapshot,
        target_catalog: Path,
        target_config_root: Path,
    ) -> MergeReport:
        """Merge the selected sections offline, then swap the result onto the live file."""

        db_dir, _meta_dir, live_catalog = self._live_paths(target_config_root)
        owner = capture_owner(live_catalog)

        self._reporter.info("Wiping existing sections in target DB")
        self._reporter.info(
            "Injecting selected sections: " + ", ".join(str(section_id) for section_id in selection.ordered)
        )
        report = merge_sections(
            target_catalog,
            base.catalog,
            selection.ids,
            content_tables=self._config.content_tables,
            scope=self._config.metadata_scope,
        )
        for table in report.unscoped_tables:
            self._reporter.warn(f"{table} has no section reference; merged without scoping")
        for table, count in report.content_rows.items():
            self._reporter.info(f"Merged {count} new rows into {table}")

        with self._coordinator.swap_window():
            try:
                atomic_replace_file(target_catalog, live_catalog)
                restore_owner(owner, db_dir)
            except OSError as exc:
                raise FilesystemError(f"Cannot swap merged catalog onto {live_catalog}: {exc}") from exc
        self._reporter.ok("Injection complete. Plex will start with updated libraries and metadata.")
        return report


__all__ = ["MergeEngine", "MergeReport", "MergeState", "merge_sections"]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures: sqlite catalogs, Plex config trees and a fake docker."""

from __future__ import annotations

import re
import shutil
import sqlite3
from collections.abc import Callable, Iterable, Mapping, Sequence
from contextlib import closing
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from subprocess import CompletedProcess
from typing import Any

import pytest

from plex_inject.config import InjectorConfig
from plex_inject.constants import CATALOG_FILENAME, CONFIG_MOUNT, DB_SUBDIR, META_SUBDIR, SUPPORT_DIR
from plex_inject.runtime import ContainerHandle

SCHEMA = """
CREATE TABLE library_sections (id INTEGER PRIMARY KEY, name TEXT, section_type INTEGER, agent TEXT);
CREATE TABLE section_locations (id INTEGER PRIMARY KEY, library_section_id INTEGER, root_path TEXT);
CREATE TABLE metadata_items (id INTEGER PRIMARY KEY, library_section_id INTEGER, title TEXT);
CREATE TABLE metadata_parts (id INTEGER PRIMARY KEY, metadata_item_id INTEGER, file TEXT);
"""

BASE_SECTIONS = {1: "Movies", 2: "TV", 3: "Music"}


def build_catalog(
    path: Path,
    sections: Mapping[int, str],
    *,
    items: Iterable[tuple[int, int, str]] = (),
    parts: Iterable[tuple[int, int, str]] = (),
) -> Path:
    """Create a catalog with one location per section plus the given content rows."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with closing(sqlite3.connect(path)) as conn:
        conn.executescript(SCHEMA)
        for section_id, name in sections.items():
            conn.execute(
                "INSERT INTO library_sections (id, name, section_type, agent) VALUES (?, ?, ?, ?)",
                (section_id, name, 1, "tv.plex.agents.none"),
            )
            conn.execute(
                "INSERT INTO section_locations (id, library_section_id, root_path) VALUES (?, ?, ?)",
                (section_id * 10, section_id, f"/data/{name.lower()}"),
            )
        conn.executemany("INSERT INTO metadata_items VALUES (?, ?, ?)", list(items))
        conn.executemany("INSERT INTO metadata_parts VALUES (?, ?, ?)", list(parts))
        conn.commit()
    return path


def read_rows(path: Path, query: str) -> list[tuple[Any, ...]]:
    with closing(sqlite3.connect(path)) as conn:
        return conn.execute(query).fetchall()


def section_ids(path: Path) -> set[int]:
    return {row[0] for row in read_rows(path, "SELECT id FROM library_sections")}


def build_config_tree(
    root: Path,
    sections: Mapping[int, str],
    *,
    items: Iterable[tuple[int, int, str]] = (),
    parts: Iterable[tuple[int, int, str]] = (),
    metadata: Mapping[str, str] | None = None,
    token: str | None = None,
) -> Path:
    """Create a host-side ``/config`` tree for one Plex instance."""

    support = root / SUPPORT_DIR
    build_catalog(support / DB_SUBDIR / CATALOG_FILENAME, sections, items=items, parts=parts)
    meta = support / META_SUBDIR
    meta.mkdir(parents=True, exist_ok=True)
    for relative, content in (metadata or {}).items():
        file_path = meta / relative
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
    if token is not None:
        (support / "plex.token").write_text(token, encoding="utf-8")
    return root


def tree_snapshot(root: Path) -> dict[str, bytes]:
    return {
        str(path.relative_to(root)): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


@dataclass
class FakeContainer:
    id: str
    name: str
    config_root: Path | None
    running: bool = True


@dataclass
class FakeRuntime:
    """In-memory stand-in for the docker CLI operating on host directories."""

    containers: list[FakeContainer] = field(default_factory=list)
    calls: list[tuple[str, str]] = field(default_factory=list)
    curl_urls: list[str] = field(default_factory=list)
    curl_returncode: int = 0
    find_override: list[str] | None = None

    def add(self, name: str, config_root: Path | None, *, running: bool = True) -> FakeContainer:
        container = FakeContainer(id=f"{name}-{len(self.containers):04d}" + "f" * 52, name=name, config_root=config_root, running=running)
        self.containers.append(container)
        return container

    def _lookup(self, ref: str) -> FakeContainer | None:
        for container in self.containers:
            if ref in (container.id, container.name):
                return container
        return None

    def _host_path(self, container: FakeContainer, container_path: str) -> Path:
        assert container.config_root is not None
        relative = PurePosixPath(container_path).relative_to(CONFIG_MOUNT)
        return container.config_root / relative

    def list_ids(self, name_filter: str) -> list[str]:
        pattern = re.compile(name_filter)
        return [container.id for container in self.containers if pattern.search(container.name)]

    def inspect(self, ref: str) -> dict[str, Any] | None:
        container = self._lookup(ref)
        if container is None:
            return None
        mounts = []
        if container.config_root is not None:
            mounts.append({"Type": "bind", "Source": str(container.config_root), "Destination": CONFIG_MOUNT})
        return {
            "Id": container.id,
            "Name": f"/{container.name}",
            "State": {"Running": container.running},
            "Mounts": mounts,
        }

    def is_running(self, handle: ContainerHandle) -> bool:
        container = self._lookup(handle.id)
        return bool(container and container.running)

    def stop(self, handle: ContainerHandle) -> None:
        container = self._lookup(handle.id)
        assert container is not None
        self.calls.append(("stop", container.name))
        container.running = False

    def start(self, handle: ContainerHandle) -> None:
        container = self._lookup(handle.id)
        assert container is not None
        self.calls.append(("start", container.name))
        container.running = True

    def exec(self, handle: ContainerHandle, args: Sequence[str], *, check: bool = True) -> CompletedProcess[str]:
        container = self._lookup(handle.id)
        assert container is not None and container.running
        if args[0] == "find":
            if self.find_override is not None:
                stdout = "\n".join(self.find_override)
            else:
                search_dir, name = args[1], args[-1]
                host_dir = self._host_path(container, search_dir)
                hits = [f"{search_dir}/{path.name}" for path in sorted(host_dir.glob(name)) if path.is_file()]
                stdout = "\n".join(hits)
            return CompletedProcess(list(args), 0, stdout=stdout, stderr="")
        if args[0] == "curl":
            self.curl_urls.append(args[-1])
            return CompletedProcess(list(args), self.curl_returncode, stdout="", stderr="")
        raise AssertionError(f"unexpected exec {args!r}")

    def copy_from(self, handle: ContainerHandle, source: str, destination: Path) -> None:
        container = self._lookup(handle.id)
        assert container is not None
        shutil.copy2(self._host_path(container, source), destination)

    def container(self, name: str) -> FakeContainer:
        found = self._lookup(name)
        assert found is not None
        return found


@pytest.fixture
def fake_runtime() -> FakeRuntime:
    return FakeRuntime()


@pytest.fixture
def config() -> InjectorConfig:
    return InjectorConfig(base_container="plex-base")


@pytest.fixture
def plex_pair(tmp_path: Path, fake_runtime: FakeRuntime) -> Callable[..., tuple[Path, Path]]:
    """Register a base and a target container backed by config trees in ``tmp_path``."""

    def _build(
        *,
        target_sections: Mapping[int, str] | None = None,
        token: str | None = "secret-token",
        base_running: bool = True,
        target_running: bool = True,
    ) -> tuple[Path, Path]:
        base_root = build_config_tree(
            tmp_path / "base",
            BASE_SECTIONS,
            items=[(100, 1, "Alien"), (200, 2, "Lost"), (300, 3, "Abbey Road")],
            parts=[(1000, 100, "alien.mkv"), (2000, 200, "lost.mkv"), (3000, 300, "come.flac")],
            metadata={"Movies/a/alien.bundle/poster.jpg": "poster", "TV Shows/l/lost.bundle/art.jpg": "art"},
        )
        target_root = build_config_tree(
            tmp_path / "target",
            target_sections if target_sections is not None else {7: "Old Stuff"},
            items=[(100, 7, "Kept Title")],
            metadata={"Movies/z/old.bundle/poster.jpg": "stale"},
            token=token,
        )
        fake_runtime.add("plex-base", base_root, running=base_running)
        fake_runtime.add("plex-user1", target_root, running=target_running)
        return base_root, target_root

    return _build

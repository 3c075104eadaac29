# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""End-to-end injection workflow wiring every component together."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .config import InjectorConfig
from .extract import CatalogExtractor
from .lifecycle import LifecycleCoordinator
from .logging import Reporter
from .merge import MergeEngine, MergeReport, MergeState
from .process_utils import require_executable
from .refresh import RefreshTrigger
from .resolver import ContainerResolver
from .runtime import ContainerHandle, ContainerRuntime, DockerRuntime
from .sections import LibrarySection, Selection, SelectionAll, list_sections

LOGGER = logging.getLogger(__name__)

SelectionProvider = Callable[[Sequence[LibrarySection]], Selection]
StopBasePolicy = Callable[[ContainerHandle], bool]


@dataclass(slots=True)
class InjectionResult:
    """Summary of a completed injection run."""

    target: ContainerHandle
    base: ContainerHandle
    selection: Selection
    state: MergeState
    report: MergeReport | None = None
    refreshed: list[str] = field(default_factory=list)

    @property
    def full_clone(self) -> bool:
        """Return ``True`` when the run replaced the whole catalog."""

        return isinstance(self.selection, SelectionAll)


def check_requirements(config: InjectorConfig) -> None:
    """Fail fast when the container runtime client is missing."""

    require_executable(config.docker_executable)


def run_injection(
    config: InjectorConfig,
    *,
    target: str,
    select: SelectionProvider,
    base: str | None = None,
    stop_base: bool | StopBasePolicy = False,
    runtime: ContainerRuntime | None = None,
    reporter: Reporter | None = None,
    log_destination: Path | None = None,
    workspace_parent: Path | None = None,
) -> InjectionResult:
    """Inject base library sections into ``target``.

    Args:
        config: Frozen run configuration.
        target: Target container name or id.
        select: Callable choosing a selection from the base sections; the CLI
            passes either a fixed selection or an interactive prompt.
        base: Base container name or id; defaults to ``config.base_container``.
        stop_base: Whether to stop the base for a consistent read, or a callable
            deciding once the base has been resolved.
        runtime: Container runtime; a :class:`DockerRuntime` is built when omitted.
        reporter: User-facing output sink.
        log_destination: Directory that receives the debug log when ``config.debug``.
        workspace_parent: Directory in which the scratch workspace is created.

    Returns:
        InjectionResult: Description of what was applied.

    Raises:
        InjectionError: On any fatal condition. The target container is left
            running and the workspace removed before the error propagates.
    """

    reporter = reporter or Reporter()
    if runtime is None:
        check_requirements(config)
        runtime = DockerRuntime(config.docker_executable, timeout=config.docker_timeout)

    coordinator = LifecycleCoordinator(
        runtime,
        reporter=reporter,
        debug=config.debug,
        log_destination=log_destination,
        workspace_parent=workspace_parent,
    )
    with coordinator:
        LOGGER.debug("config %s", config.model_dump_json())
        reporter.section("Containers")
        resolver = ContainerResolver(runtime, config)
        target_handle = resolver.resolve(target)
        base_handle = resolver.resolve(base or config.base_container)
        coordinator.track(target=target_handle, base=base_handle)
        reporter.info(f"Base: {base_handle}, Target: {target_handle}")

        should_stop = stop_base(base_handle) if callable(stop_base) else stop_base
        if should_stop:
            coordinator.stop_base()

        reporter.section("Extract")
        extractor = CatalogExtractor(runtime, resolver, config, coordinator.workspace, reporter=reporter)
        base_snapshot = extractor.extract_base(base_handle)
        target_catalog = extractor.extract_target_db(target_handle)

        sections = list_sections(base_snapshot.catalog)
        selection = select(sections)
        LOGGER.debug("selection %s", selection)

        reporter.section("Merge")
        target_config_root = resolver.config_path(target_handle)
        engine = MergeEngine(config, coordinator, reporter=reporter)
        report = engine.run(
            selection,
            base=base_snapshot,
            target_catalog=target_catalog,
            target_config_root=target_config_root,
        )
        coordinator.restart_base()

        reporter.section("Refresh")
        refresher = RefreshTrigger(runtime, config, reporter=reporter)
        refreshed = refresher.refresh(
            target_handle,
            target_config_root / config.support_dir,
            selection,
        )

    return InjectionResult(
        target=target_handle,
        base=base_handle,
        selection=selection,
        state=engine.state,
        report=report,
        refreshed=refreshed,
    )


__all__ = ["InjectionResult", "SelectionProvider", "check_requirements", "run_injection"]

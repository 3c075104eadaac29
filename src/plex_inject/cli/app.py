# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point for library injection."""

from __future__ import annotations

from pathlib import Path

import typer

from ..config import ConfigError, InjectorConfig
from ..constants import EXIT_FAILURE
from ..errors import InjectionError
from ..injector import run_injection
from ..logging import Reporter
from ._inject_cli_models import (
    ALL_OPTION,
    BASE_OPTION,
    DEBUG_OPTION,
    EMOJI_OPTION,
    METADATA_SCOPE_OPTION,
    SECTIONS_OPTION,
    STOP_BASE_OPTION,
    TARGET_OPTION,
    InjectCLIOptions,
)
from ._inject_cli_services import build_selection_provider, build_stop_base_policy

app = typer.Typer(
    name="plex-inject",
    help=(
        "Transfer selected library sections from a base Plex container into a target "
        "container, or fully clone the base configuration, then trigger a library refresh."
    ),
    add_completion=False,
)


@app.command()
def inject(
    target: TARGET_OPTION,
    base: BASE_OPTION = None,
    debug: DEBUG_OPTION = False,
    sections: SECTIONS_OPTION = None,
    select_all: ALL_OPTION = False,
    stop_base: STOP_BASE_OPTION = None,
    metadata_scope: METADATA_SCOPE_OPTION = None,
    emoji: EMOJI_OPTION = True,
) -> None:
    """Inject library sections into TARGET."""

    options = InjectCLIOptions(
        target=target,
        base=base,
        debug=debug,
        sections=sections,
        select_all=select_all,
        stop_base=stop_base,
        metadata_scope=metadata_scope,
        emoji=emoji,
    )
    reporter = Reporter(use_emoji=options.emoji)
    if options.select_all and options.sections:
        reporter.fail("--all and --sections are mutually exclusive")
        raise typer.Exit(code=EXIT_FAILURE)

    try:
        config = InjectorConfig.from_env(
            base_container=options.base,
            metadata_scope=options.metadata_scope,
            debug=options.debug or None,
        )
    except ConfigError as exc:
        reporter.fail(f"Invalid configuration: {exc}")
        raise typer.Exit(code=EXIT_FAILURE) from exc

    try:
        run_injection(
            config,
            target=options.target,
            base=options.base,
            select=build_selection_provider(options.preselected, reporter=reporter),
            stop_base=build_stop_base_policy(options.stop_base),
            reporter=reporter,
            log_destination=Path.cwd(),
        )
    except InjectionError as exc:
        reporter.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc
    except (KeyboardInterrupt, typer.Abort) as exc:
        reporter.fail("Interrupted")
        raise typer.Exit(code=EXIT_FAILURE) from exc


def main() -> None:
    """Entry point for the ``plex-inject`` console script."""

    app()


if __name__ == "__main__":
    main()

"""Implementation of the 'pre' command.

The pre command determines the next version and writes it into
pyproject.toml (and any configured version files).
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from rich.panel import Panel

from semrel.cli.commands.common import fail, prepare
from semrel.core.graph import invoke
from semrel.core.pre import run_pre_pipeline
from semrel.exceptions import ExitCode, NoQualifyingChangesError, SemrelError
from semrel.log import get_logger
from semrel.plugins import ExtensionPoint
from semrel.project.pyproject import update_pyproject_version, update_version_file

if TYPE_CHECKING:
    from rich.console import Console

    from semrel.cli.commands.common import Session

logger = get_logger(__name__)


def _verify_conditions(session: Session, err_console: Console) -> None:
    verify = session.registry.resolve(ExtensionPoint.VERIFY_CONDITIONS)
    try:
        asyncio.run(invoke(verify, session.ctx))
    except Exception as e:  # noqa: BLE001
        if session.config.dry_run:
            logger.warning("Release conditions not met, continuing in dry-run mode: %s", e)
            return
        fail(err_console, "pre", e)


def run_pre(
    path: str | None,
    overrides: dict[str, Any],
    console: Console,
    err_console: Console,
) -> None:
    """Run the pre command.

    Args:
        path: Optional path to project directory
        overrides: Options given on the command line
        console: Console for standard output
        err_console: Console for error output
    """
    session = prepare("pre", path, overrides, err_console)
    config = session.config

    logger.debug("Verifying release conditions")
    _verify_conditions(session, err_console)

    try:
        result = asyncio.run(run_pre_pipeline(session.ctx, session.registry))
    except NoQualifyingChangesError as e:
        console.print(f"[yellow]{e}[/]")
        raise SystemExit(int(e.exit_code)) from e
    except Exception as e:  # noqa: BLE001
        err_console.print("[red]Failed to determine new version.[/]")
        fail(err_console, "pre", e)

    next_release = result.next_release

    message = f"Determined version {next_release.version} as {config.dist_tag!r}."
    logger.info(message)

    if config.dry_run:
        console.print(
            Panel(
                f"[bold]{message}[/]\n\n"
                f"  • Bump type: [cyan]{next_release.type.value}[/]\n"
                f"  • Commits: [cyan]{len(result.commits)}[/]\n"
                f"  • Would update version in [cyan]pyproject.toml[/]",
                title="[yellow]Dry Run: not persisting[/]",
                border_style="yellow",
            )
        )
        raise SystemExit(int(ExitCode.DRY_RUN))

    try:
        update_pyproject_version(config.project_path, next_release.version)
        console.print(f"  [green]✓[/] Wrote version {next_release.version} to pyproject.toml")
        for version_file in config.version_files:
            update_version_file(config.project_path / version_file, next_release.version)
            console.print(f"  [green]✓[/] Wrote version {next_release.version} to {version_file}")
    except SemrelError as e:
        fail(err_console, "pre", e)

    console.print(
        Panel(
            f"[green]{message}[/]\n\n"
            "Next steps:\n"
            "  1. Build and publish the package\n"
            "  2. Publish release notes: [cyan]semrel post[/]",
            title="[green]Version Determined[/]",
            border_style="green",
        )
    )

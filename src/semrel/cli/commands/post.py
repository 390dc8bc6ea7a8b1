"""Implementation of the 'post' command.

The post command renders release notes for the version in pyproject.toml
and creates the GitHub release.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from rich.markdown import Markdown
from rich.panel import Panel

from semrel.cli.commands.common import fail, prepare
from semrel.core.post import run_post_pipeline
from semrel.exceptions import ExitCode
from semrel.log import get_logger
from semrel.project.pyproject import get_pyproject_version

if TYPE_CHECKING:
    from rich.console import Console

logger = get_logger(__name__)


def run_post(
    path: str | None,
    overrides: dict[str, Any],
    console: Console,
    err_console: Console,
) -> None:
    """Run the post command.

    Args:
        path: Optional path to project directory
        overrides: Options given on the command line
        console: Console for standard output
        err_console: Console for error output
    """
    session = prepare("post", path, overrides, err_console)
    config = session.config

    try:
        version = get_pyproject_version(config.project_path)
        result = asyncio.run(run_post_pipeline(session.ctx, session.registry, version))
    except Exception as e:  # noqa: BLE001
        err_console.print("[red]Failed to publish release notes.[/]")
        fail(err_console, "post", e)

    payload = result.payload
    if not result.published:
        console.print(Markdown(payload.body))
        console.print(
            Panel(
                f"[bold]Generated release notes for {payload.tag_name}[/]\n\n"
                f"  • Repository: [cyan]{payload.owner}/{payload.repo}[/]\n"
                f"  • Commit: [cyan]{payload.target_commitish}[/]\n"
                f"  • Draft: {payload.draft}  Prerelease: {payload.prerelease}",
                title="[yellow]Dry Run: not publishing[/]",
                border_style="yellow",
            )
        )
        raise SystemExit(int(ExitCode.DRY_RUN))

    console.print(
        Panel(
            f"[green]Published release {payload.tag_name}[/]\n\n"
            f"  {result.html_url or ''}",
            title="[green]Release Published[/]",
            border_style="green",
        )
    )

"""Setup shared by the pre and post commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn

from semrel.config import load_config
from semrel.config.verify import Phase, verify_config
from semrel.exceptions import ExitCode, SemrelError
from semrel.plugins import ReleaseContext, StrategyRegistry
from semrel.vcs import GitRepository

if TYPE_CHECKING:
    from rich.console import Console

    from semrel.config.models import SemrelConfig


@dataclass(frozen=True, slots=True)
class Session:
    config: SemrelConfig
    ctx: ReleaseContext
    registry: StrategyRegistry


def fail(err_console: Console, phase: str, error: BaseException, code: int | None = None) -> NoReturn:
    """Report an error and exit."""
    err_console.print(f"[red]{phase}:[/] {error}")
    if code is None:
        code = error.exit_code if isinstance(error, SemrelError) else ExitCode.FAILURE
    raise SystemExit(int(code)) from error


def prepare(
    phase: Phase,
    path: str | None,
    overrides: dict[str, Any],
    err_console: Console,
) -> Session:
    """Load config, verify it, open the repository and resolve every strategy.

    Any failure is reported and ends the process before a pipeline step runs.
    """
    project_path = Path(path) if path else Path.cwd()

    try:
        config = load_config(project_path, overrides)
    except SemrelError as e:
        fail(err_console, phase, e)

    problems = verify_config(config, phase)
    for problem in problems:
        err_console.print(f"[red]{phase}:[/] {problem}")
    if problems:
        raise SystemExit(int(ExitCode.FAILURE))

    try:
        repo = GitRepository(config.project_path)
        dirty = not config.allow_dirty and repo.is_dirty()
    except SemrelError as e:
        fail(err_console, phase, e)
    if dirty:
        err_console.print(
            "[red]Error:[/] Repository has uncommitted changes.\n"
            "Commit or stash them, or use [cyan]allow_dirty = true[/] in config."
        )
        raise SystemExit(int(ExitCode.FAILURE))

    registry = StrategyRegistry(config)
    try:
        registry.resolve_all()
    except SemrelError as e:
        fail(err_console, phase, e)

    return Session(config=config, ctx=ReleaseContext(config=config, repo=repo), registry=registry)

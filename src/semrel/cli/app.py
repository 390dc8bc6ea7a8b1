"""semrel command line interface.

Two subcommands make up a release cycle:

    semrel pre    determine the next version and write it to pyproject.toml
    semrel post   publish release notes for that version on GitHub

Options given here win over environment variables, which win over
[tool.semrel] in pyproject.toml.
"""

from __future__ import annotations

from typing import Annotated, Any

import typer
from rich.console import Console

from semrel.cli.commands.post import run_post
from semrel.cli.commands.pre import run_pre
from semrel.log import configure_logging

app = typer.Typer(
    name="semrel",
    add_completion=False,
    no_args_is_help=True,
    help="Automated semantic versioning and GitHub release notes.",
)

console = Console()
err_console = Console(stderr=True)

PathOpt = Annotated[str | None, typer.Option("--path", "-p", help="Project directory")]
BranchOpt = Annotated[str | None, typer.Option(help="Branch releases are made from")]
DebugOpt = Annotated[
    bool | None,
    typer.Option("--debug/--no-debug", "--dry-run/--no-dry-run", help="Compute without persisting or publishing"),
]
PrereleaseOpt = Annotated[
    bool | None, typer.Option("--prerelease/--no-prerelease", help="Mark the GitHub release as a prerelease")
]
TokenOpt = Annotated[str | None, typer.Option("--github-token", help="GitHub token", show_default=False)]
GitHubUrlOpt = Annotated[str | None, typer.Option("--github-url", help="GitHub API base URL")]
TagOpt = Annotated[str | None, typer.Option("--tag", help="Distribution tag the version is released as")]
AppendOpt = Annotated[str | None, typer.Option("--append", help="Suffix appended to the computed version")]
VerifyConditionsOpt = Annotated[str | None, typer.Option("--verify-conditions", help="verify-conditions strategy")]
GetLastReleaseOpt = Annotated[str | None, typer.Option("--get-last-release", help="get-last-release strategy")]
AnalyzeCommitsOpt = Annotated[str | None, typer.Option("--analyze-commits", help="analyze-commits strategy")]
GenerateNotesOpt = Annotated[str | None, typer.Option("--generate-notes", help="generate-notes strategy")]
VerifyReleaseOpt = Annotated[str | None, typer.Option("--verify-release", help="verify-release strategy")]
VerboseOpt = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")]


def build_overrides(
    *,
    branch: str | None,
    debug: bool | None,
    prerelease: bool | None,
    github_token: str | None,
    github_url: str | None,
    tag: str | None,
    append: str | None,
    verify_conditions: str | None,
    get_last_release: str | None,
    analyze_commits: str | None,
    generate_notes: str | None,
    verify_release: str | None,
) -> dict[str, Any]:
    """Turn command line options into a config fragment; unset options are omitted."""
    overrides: dict[str, Any] = {
        "branch": branch,
        "debug": debug,
        "prerelease": prerelease,
        "dist_tag": tag,
        "append": append,
    }
    github = {"token": github_token, "api_url": github_url}
    plugins = {
        "verify_conditions": verify_conditions,
        "get_last_release": get_last_release,
        "analyze_commits": analyze_commits,
        "generate_notes": generate_notes,
        "verify_release": verify_release,
    }
    overrides["github"] = {k: v for k, v in github.items() if v is not None}
    overrides["plugin_overrides"] = {k: v for k, v in plugins.items() if v is not None}
    return {k: v for k, v in overrides.items() if v is not None and v != {}}


@app.command()
def pre(
    path: PathOpt = None,
    branch: BranchOpt = None,
    debug: DebugOpt = None,
    prerelease: PrereleaseOpt = None,
    github_token: TokenOpt = None,
    github_url: GitHubUrlOpt = None,
    tag: TagOpt = None,
    append: AppendOpt = None,
    verify_conditions: VerifyConditionsOpt = None,
    get_last_release: GetLastReleaseOpt = None,
    analyze_commits: AnalyzeCommitsOpt = None,
    generate_notes: GenerateNotesOpt = None,
    verify_release: VerifyReleaseOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Determine the next version and write it to pyproject.toml."""
    configure_logging("DEBUG" if verbose else None)
    overrides = build_overrides(
        branch=branch,
        debug=debug,
        prerelease=prerelease,
        github_token=github_token,
        github_url=github_url,
        tag=tag,
        append=append,
        verify_conditions=verify_conditions,
        get_last_release=get_last_release,
        analyze_commits=analyze_commits,
        generate_notes=generate_notes,
        verify_release=verify_release,
    )
    run_pre(path, overrides, console, err_console)


@app.command()
def post(
    path: PathOpt = None,
    branch: BranchOpt = None,
    debug: DebugOpt = None,
    prerelease: PrereleaseOpt = None,
    github_token: TokenOpt = None,
    github_url: GitHubUrlOpt = None,
    tag: TagOpt = None,
    append: AppendOpt = None,
    verify_conditions: VerifyConditionsOpt = None,
    get_last_release: GetLastReleaseOpt = None,
    analyze_commits: AnalyzeCommitsOpt = None,
    generate_notes: GenerateNotesOpt = None,
    verify_release: VerifyReleaseOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Publish release notes for the version in pyproject.toml."""
    configure_logging("DEBUG" if verbose else None)
    overrides = build_overrides(
        branch=branch,
        debug=debug,
        prerelease=prerelease,
        github_token=github_token,
        github_url=github_url,
        tag=tag,
        append=append,
        verify_conditions=verify_conditions,
        get_last_release=get_last_release,
        analyze_commits=analyze_commits,
        generate_notes=generate_notes,
        verify_release=verify_release,
    )
    run_post(path, overrides, console, err_console)


def main() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()

"""Built-in strategies.

Every extension point has a ``"default"`` strategy that works without any
configuration, so an unconfigured project can still be released.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from semrel.core.changelog import generate_changelog, get_bump_from_git_cliff, render_release_notes
from semrel.core.commits import calculate_bump, parse_commits
from semrel.core.models import LastRelease
from semrel.core.version import BumpType, Version, is_valid_version
from semrel.exceptions import ConfigurationError
from semrel.log import get_logger
from semrel.plugins.registry import ExtensionPoint, ReleaseContext, register, strategy

if TYPE_CHECKING:
    from collections.abc import Sequence

    from semrel.core.models import NextRelease
    from semrel.vcs.git import Commit

logger = get_logger(__name__)


@strategy(ExtensionPoint.VERIFY_CONDITIONS)
def verify_branch(ctx: ReleaseContext) -> None:
    """Only release from the configured branch. A detached HEAD is accepted."""
    branch = ctx.repo.current_branch()
    if branch is None:
        logger.debug("Detached HEAD, skipping branch check")
        return
    if branch != ctx.config.branch:
        raise ConfigurationError(
            f"Releases are made from branch {ctx.config.branch!r}, currently on {branch!r}"
        )


@strategy(ExtensionPoint.VERIFY_CONDITIONS, "noop")
def verify_nothing(ctx: ReleaseContext) -> None:
    return None


@strategy(ExtensionPoint.GET_LAST_RELEASE)
def last_release_from_tags(ctx: ReleaseContext) -> LastRelease | None:
    """Highest semver tag with the configured prefix reachable from HEAD."""
    prefix = ctx.config.tag_prefix
    candidates: list[tuple[Version, str]] = []
    for tag in ctx.repo.list_tags(ctx.config.tag_pattern):
        raw = tag[len(prefix) :]
        if is_valid_version(raw):
            candidates.append((Version.parse(raw), tag))
    if not candidates:
        return None
    version, tag = max(candidates, key=lambda item: item[0])
    return LastRelease(version=str(version), ref=tag)


@strategy(ExtensionPoint.ANALYZE_COMMITS)
def analyze_conventional(ctx: ReleaseContext, commits: Sequence[Commit]) -> BumpType:
    parsed = parse_commits(commits, ctx.config.commits)
    return calculate_bump(parsed, ctx.config.commits)


register(ExtensionPoint.ANALYZE_COMMITS, "conventional", analyze_conventional)


@strategy(ExtensionPoint.ANALYZE_COMMITS, "git-cliff")
def analyze_git_cliff(ctx: ReleaseContext, commits: Sequence[Commit]) -> BumpType:
    return get_bump_from_git_cliff(ctx.repo, ctx.config)


@strategy(ExtensionPoint.GENERATE_NOTES)
def notes_markdown(ctx: ReleaseContext, commits: Sequence[Commit], next_release: NextRelease) -> str:
    return render_release_notes(commits, next_release.version, ctx.config)


@strategy(ExtensionPoint.GENERATE_NOTES, "git-cliff")
def notes_git_cliff(ctx: ReleaseContext, commits: Sequence[Commit], next_release: NextRelease) -> str:
    github = ctx.config.github
    github_repo = f"{github.owner}/{github.repo}" if github.owner and github.repo else None
    return generate_changelog(ctx.repo, next_release.version, ctx.config, github_repo=github_repo)


@strategy(ExtensionPoint.VERIFY_RELEASE)
def admit_release(
    ctx: ReleaseContext,
    commits: Sequence[Commit],
    last_release: LastRelease | None,
    next_release: NextRelease,
) -> str | None:
    return None


register(ExtensionPoint.VERIFY_RELEASE, "noop", admit_release)

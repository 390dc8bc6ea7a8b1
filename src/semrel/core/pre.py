"""Version determination pipeline.

Finds the last release, collects the commits made since, classifies the
bump they need, computes the next version and lets the verify-release
strategy veto it:

    last_release ──► commits ──► bump ──► compute_next_release ──► verify_release
         └──────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from semrel.core.commits import filter_skip_release_commits
from semrel.core.graph import TaskGraph, invoke
from semrel.core.models import INITIAL_VERSION, LastRelease, NextRelease, PreResult
from semrel.core.version import BumpType, Version
from semrel.exceptions import ConfigurationError, NoQualifyingChangesError, ReleaseRejectedError
from semrel.log import get_logger
from semrel.plugins import ExtensionPoint

if TYPE_CHECKING:
    from semrel.plugins import ReleaseContext, StrategyRegistry
    from semrel.vcs.git import Commit

logger = get_logger(__name__)

_CLASSIFIER_ANSWERS = frozenset({BumpType.MAJOR, BumpType.MINOR, BumpType.PATCH, BumpType.NONE})


def compute_next_release(bump: BumpType, last_release: LastRelease | None) -> NextRelease:
    """Apply a bump to the last release.

    Raises:
        NoQualifyingChangesError: If the bump is NONE
    """
    if bump is BumpType.INITIAL:
        return NextRelease(type=BumpType.INITIAL, version=INITIAL_VERSION)
    if bump is BumpType.NONE:
        raise NoQualifyingChangesError("There are no relevant changes, so no new version is released.")
    if last_release is None:
        raise ConfigurationError(f"Cannot apply a {bump.value} bump without a previous release")
    version = last_release.parsed_version.bump(bump)
    return NextRelease(type=bump, version=str(version))


def apply_append(next_release: NextRelease, suffix: str, last_release: LastRelease | None) -> NextRelease:
    """Attach the configured prerelease suffix to the computed version.

    Raises:
        ReleaseRejectedError: If the suffixed version does not sort after the last release
    """
    suffixed = next_release.with_suffix(suffix)
    if last_release is not None and Version.parse(suffixed.version) <= last_release.parsed_version:
        raise ReleaseRejectedError(
            f"{suffixed.version} is not newer than the last release {last_release.version}; "
            f"choose a different append suffix than {suffix!r}"
        )
    return suffixed


def _coerce_bump(answer: Any, spec: str) -> BumpType:
    try:
        bump = BumpType(answer)
    except ValueError:
        bump = None
    if bump not in _CLASSIFIER_ANSWERS:
        raise ConfigurationError(
            f"analyze-commits strategy {spec!r} returned {answer!r}; "
            "expected one of major, minor, patch, none"
        )
    return bump


async def classify_bump(
    ctx: ReleaseContext,
    registry: StrategyRegistry,
    commits: Sequence[Commit],
    last_release: LastRelease | None,
) -> BumpType:
    """Decide the bump type.

    No previous release forces INITIAL and an empty commit list forces NONE;
    only otherwise is the analyze-commits strategy consulted.
    """
    if last_release is None:
        return BumpType.INITIAL
    if not commits:
        return BumpType.NONE
    analyze = registry.resolve(ExtensionPoint.ANALYZE_COMMITS)
    answer = await invoke(analyze, ctx, commits)
    return _coerce_bump(answer, registry.spec_for(ExtensionPoint.ANALYZE_COMMITS)[0])


def collect_commits(ctx: ReleaseContext, last_release: LastRelease | None) -> tuple[Commit, ...]:
    config = ctx.config
    commits = ctx.repo.list_commits(
        last_release.ref if last_release else None,
        oldest_first=config.commits.order == "oldest-first",
    )
    kept = filter_skip_release_commits(commits, config.commits.skip_release_patterns)
    if len(kept) != len(commits):
        logger.info("Skipping %d commits marked as non-releasing", len(commits) - len(kept))
    return tuple(kept)


def last_release_step(
    ctx: ReleaseContext, registry: StrategyRegistry
) -> Callable[[Mapping[str, Any]], Awaitable[LastRelease | None]]:
    """Graph step running the get-last-release strategy. Shared by pre and post."""
    get_last_release = registry.resolve(ExtensionPoint.GET_LAST_RELEASE)

    async def step(_: Mapping[str, Any]) -> LastRelease | None:
        last = await invoke(get_last_release, ctx)
        if last is not None and not isinstance(last, LastRelease):
            raise ConfigurationError(
                f"get-last-release strategy returned {type(last).__name__}, expected LastRelease"
            )
        return last

    return step


def build_graph(ctx: ReleaseContext, registry: StrategyRegistry) -> TaskGraph:
    def commits_step(results: Mapping[str, Any]) -> tuple[Commit, ...]:
        return collect_commits(ctx, results["last_release"])

    async def bump_step(results: Mapping[str, Any]) -> BumpType:
        return await classify_bump(ctx, registry, results["commits"], results["last_release"])

    graph = TaskGraph("pre")
    graph.add("last_release", last_release_step(ctx, registry))
    graph.add("commits", commits_step, requires=["last_release"])
    graph.add("bump", bump_step, requires=["commits", "last_release"])
    return graph


async def run_pre_pipeline(ctx: ReleaseContext, registry: StrategyRegistry) -> PreResult:
    """Determine the next release.

    Raises:
        ConfigurationError: On a bad strategy
        NoQualifyingChangesError: If nothing warrants a release
        ReleaseRejectedError: If verify-release vetoes the release, or the
            appended suffix would not produce a newer version
    """
    results = await build_graph(ctx, registry).run()
    last_release: LastRelease | None = results["last_release"]
    commits: tuple[Commit, ...] = results["commits"]
    bump: BumpType = results["bump"]

    if last_release is None:
        logger.info("No previous release found, this is the initial release")
    else:
        logger.info(
            "Last release is %s (%s), %d commits since",
            last_release.version,
            last_release.ref,
            len(commits),
        )

    next_release = compute_next_release(bump, last_release)
    if ctx.config.append:
        next_release = apply_append(next_release, ctx.config.append, last_release)

    verify_release = registry.resolve(ExtensionPoint.VERIFY_RELEASE)
    verdict = await invoke(verify_release, ctx, commits, last_release, next_release)
    # None or True admits; False or a reason string rejects.
    if verdict is False:
        raise ReleaseRejectedError("verify-release strategy rejected the release")
    if verdict is not None and verdict is not True:
        raise ReleaseRejectedError(str(verdict))

    logger.info("Next release is %s (%s)", next_release.version, next_release.type.value)
    return PreResult(last_release=last_release, commits=commits, next_release=next_release)

"""Publication pipeline.

Renders release notes for the version ``pre`` wrote into the manifest and
creates the GitHub release for it. The release point (HEAD) is resolved
while the notes are being rendered:

    last_release ──► commits ──► notes ──┐
                                         ├──► publish
    release_point ───────────────────────┘

In dry-run mode the payload is returned without contacting GitHub.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any

from semrel.core.graph import TaskGraph, invoke
from semrel.core.models import NextRelease, PublishResult, ReleaseNotes, ReleasePayload
from semrel.core.pre import classify_bump, collect_commits, last_release_step
from semrel.exceptions import ConfigurationError, GitError, ReleasePointUnresolvedError
from semrel.github.client import GitHubClient
from semrel.log import get_logger
from semrel.plugins import ExtensionPoint

if TYPE_CHECKING:
    from collections.abc import Mapping

    from semrel.plugins import ReleaseContext, StrategyRegistry
    from semrel.vcs.git import Commit

logger = get_logger(__name__)


def resolve_release_point(ctx: ReleaseContext) -> str:
    """The commit sha the release is anchored to.

    Raises:
        ReleasePointUnresolvedError: If HEAD cannot be resolved
    """
    try:
        sha = ctx.repo.head_sha()
    except GitError as e:
        raise ReleasePointUnresolvedError(f"Could not resolve the release commit: {e}") from e
    if not sha:
        raise ReleasePointUnresolvedError("Could not resolve the release commit: empty HEAD")
    return sha


def build_payload(ctx: ReleaseContext, notes: ReleaseNotes) -> ReleasePayload:
    github = ctx.config.github
    if not github.owner or not github.repo:
        raise ConfigurationError(
            "GitHub owner/repo unknown. Set [project.urls].Repository or [tool.semrel.github]."
        )
    if notes.target_commitish is None:
        raise ReleasePointUnresolvedError(f"No release commit for {notes.tag_name}")
    return ReleasePayload(
        owner=github.owner,
        repo=github.repo,
        tag_name=notes.tag_name,
        name=notes.tag_name,
        target_commitish=notes.target_commitish,
        body=notes.body,
        draft=notes.draft,
        prerelease=notes.prerelease,
    )


async def publish(
    ctx: ReleaseContext, notes: ReleaseNotes, publisher: GitHubClient | None = None
) -> PublishResult:
    """Create the hosted release, or simulate it in dry-run mode."""
    payload = build_payload(ctx, notes)
    if ctx.config.dry_run:
        logger.info("Dry run: not creating release %s on GitHub", payload.tag_name)
        return PublishResult(published=False, payload=payload, notes=notes)

    if publisher is None:
        publisher = GitHubClient(ctx.config.github_token, ctx.config.github.api_url)
    hosted = await publisher.create_release(payload)
    return PublishResult(
        published=True,
        payload=payload,
        release_id=hosted.id,
        html_url=hosted.html_url,
        notes=notes,
    )


def build_graph(
    ctx: ReleaseContext,
    registry: StrategyRegistry,
    version: str,
    publisher: GitHubClient | None = None,
) -> TaskGraph:
    config = ctx.config
    generate_notes = registry.resolve(ExtensionPoint.GENERATE_NOTES)

    def commits_step(results: Mapping[str, Any]) -> tuple[Commit, ...]:
        return collect_commits(ctx, results["last_release"])

    def release_point_step(_: Mapping[str, Any]) -> str:
        return resolve_release_point(ctx)

    async def notes_step(results: Mapping[str, Any]) -> ReleaseNotes:
        commits = results["commits"]
        bump = await classify_bump(ctx, registry, commits, results["last_release"])
        next_release = NextRelease(type=bump, version=version)
        body = await invoke(generate_notes, ctx, commits, next_release)
        return ReleaseNotes(
            body=str(body),
            tag_name=next_release.tag_name(config.tag_prefix),
            draft=config.dry_run,
            prerelease=config.prerelease,
        )

    async def publish_step(results: Mapping[str, Any]) -> PublishResult:
        notes = replace(results["notes"], target_commitish=results["release_point"])
        return await publish(ctx, notes, publisher)

    graph = TaskGraph("post")
    graph.add("last_release", last_release_step(ctx, registry))
    graph.add("commits", commits_step, requires=["last_release"])
    graph.add("release_point", release_point_step)
    graph.add("notes", notes_step, requires=["commits", "last_release"])
    graph.add("publish", publish_step, requires=["notes", "release_point"])
    return graph


async def run_post_pipeline(
    ctx: ReleaseContext,
    registry: StrategyRegistry,
    version: str,
    publisher: GitHubClient | None = None,
) -> PublishResult:
    """Render and publish release notes for ``version``.

    Raises:
        ReleasePointUnresolvedError: If HEAD cannot be resolved
        PublishError: If GitHub cannot be reached or rejects the release
    """
    results = await build_graph(ctx, registry, version, publisher).run()
    return results["publish"]

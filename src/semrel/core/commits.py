"""Conventional commit parsing and bump classification.

Implements the Conventional Commits 1.0.0 header grammar:

    <type>[optional scope][!]: <description>

A breaking change is signalled by ``!`` after the type/scope or by a
``BREAKING CHANGE:`` footer anywhere in the message.
"""

from __future__ import annotations

import re
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING

from semrel.core.version import BumpType

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from semrel.config.models import CommitsConfig
    from semrel.vcs.git import Commit

_HEADER_RE = re.compile(
    r"^(?P<type>[A-Za-z]+)(?:\((?P<scope>[^()\r\n]+)\))?(?P<breaking>!)?:\s+(?P<description>\S.*)$"
)


@dataclass(frozen=True, slots=True)
class ParsedCommit:
    """A commit with its conventional commit fields extracted."""

    commit: Commit
    commit_type: str | None
    scope: str | None
    description: str
    body: str
    is_breaking: bool

    @property
    def is_conventional(self) -> bool:
        return self.commit_type is not None

    @classmethod
    def from_commit(cls, commit: Commit, breaking_pattern: str) -> ParsedCommit:
        header, _, body = commit.message.partition("\n")
        header = header.strip()
        body = body.strip()
        breaking_in_body = re.search(breaking_pattern, body) is not None

        match = _HEADER_RE.match(header)
        if match is None:
            return cls(
                commit=commit,
                commit_type=None,
                scope=None,
                description=header,
                body=body,
                is_breaking=breaking_in_body,
            )

        return cls(
            commit=commit,
            commit_type=match.group("type").lower(),
            scope=match.group("scope"),
            description=match.group("description").strip(),
            body=body,
            is_breaking=bool(match.group("breaking")) or breaking_in_body,
        )


def parse_commits(commits: Iterable[Commit], config: CommitsConfig) -> list[ParsedCommit]:
    """Parse commits, keeping only those whose scope matches ``scope_regex`` if set."""
    parsed = [ParsedCommit.from_commit(c, config.breaking_pattern) for c in commits]
    if config.scope_regex:
        scope_re = re.compile(config.scope_regex)
        parsed = [pc for pc in parsed if pc.scope is not None and scope_re.search(pc.scope)]
    return parsed


def classify_commit(pc: ParsedCommit, config: CommitsConfig) -> BumpType:
    if pc.is_breaking or pc.commit_type in config.types_major:
        return BumpType.MAJOR
    if pc.commit_type in config.types_minor:
        return BumpType.MINOR
    if pc.commit_type in config.types_patch:
        return BumpType.PATCH
    return BumpType.NONE


def calculate_bump(parsed: Sequence[ParsedCommit], config: CommitsConfig) -> BumpType:
    """Highest bump any single commit asks for; NONE for an empty list."""
    bump = BumpType.NONE
    for pc in parsed:
        candidate = classify_commit(pc, config)
        if candidate.rank > bump.rank:
            bump = candidate
        if bump is BumpType.MAJOR:
            break
    return bump


def filter_skip_release_commits(commits: Sequence[Commit], patterns: Sequence[str]) -> list[Commit]:
    """Drop commits whose message contains a skip marker (case-insensitive)."""
    if not patterns:
        return list(commits)
    lowered = [p.lower() for p in patterns]
    return [c for c in commits if not any(p in c.message.lower() for p in lowered)]


def group_commits_by_type(parsed: Iterable[ParsedCommit]) -> dict[str, list[ParsedCommit]]:
    """Group commits by type; non-conventional commits go under ``other``."""
    grouped: dict[str, list[ParsedCommit]] = defaultdict(list)
    for pc in parsed:
        grouped[pc.commit_type or "other"].append(pc)
    return dict(grouped)


def get_breaking_changes(parsed: Iterable[ParsedCommit]) -> list[ParsedCommit]:
    return [pc for pc in parsed if pc.is_breaking]


def format_commit_for_changelog(
    pc: ParsedCommit,
    *,
    include_scope: bool = True,
    include_sha: bool = False,
) -> str:
    """Format a commit as a markdown list item."""
    parts = ["-"]
    if pc.is_breaking:
        parts.append("[BREAKING]")
    if include_scope and pc.scope:
        parts.append(f"**{pc.scope}:**")
    parts.append(pc.description)
    if include_sha:
        parts.append(f"({pc.commit.short_sha})")
    return " ".join(parts)

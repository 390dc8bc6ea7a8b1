"""Core business logic for semrel.

This package contains the fundamental building blocks:
- Semantic version parsing and bumping
- Conventional commit parsing and bump classification
- Release notes rendering
- The task graph executor the pre and post pipelines run on

The pipelines themselves live in :mod:`semrel.core.pre` and
:mod:`semrel.core.post`.
"""

from __future__ import annotations

from semrel.core.changelog import generate_changelog, render_release_notes
from semrel.core.commits import (
    ParsedCommit,
    calculate_bump,
    filter_skip_release_commits,
    format_commit_for_changelog,
    get_breaking_changes,
    group_commits_by_type,
    parse_commits,
)
from semrel.core.graph import TaskGraph
from semrel.core.models import LastRelease, NextRelease, PreResult, PublishResult, ReleaseNotes
from semrel.core.version import BumpType, Version

__all__ = [
    # Version
    "BumpType",
    "Version",
    # Records
    "LastRelease",
    "NextRelease",
    "PreResult",
    "PublishResult",
    "ReleaseNotes",
    # Commits
    "ParsedCommit",
    "calculate_bump",
    "filter_skip_release_commits",
    "format_commit_for_changelog",
    "get_breaking_changes",
    "group_commits_by_type",
    "parse_commits",
    # Release notes
    "generate_changelog",
    "render_release_notes",
    # Execution
    "TaskGraph",
]

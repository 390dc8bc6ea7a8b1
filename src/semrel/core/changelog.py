"""Release notes rendering.

Two renderers are provided: a built-in markdown renderer working from the
commits collected by the pipeline, and a wrapper around git-cliff for
projects that keep a ``[tool.git-cliff]`` configuration.

git-cliff is called as a subprocess and its output is captured.
"""

from __future__ import annotations

import re
import subprocess
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from semrel.core.commits import (
    format_commit_for_changelog,
    get_breaking_changes,
    group_commits_by_type,
    parse_commits,
)
from semrel.core.version import BumpType
from semrel.exceptions import ChangelogError, GitCliffError
from semrel.log import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from semrel.config.models import SemrelConfig
    from semrel.vcs.git import Commit, GitRepository

logger = get_logger(__name__)

TYPE_LABELS = {
    "feat": "### ✨ Features",
    "fix": "### 🐛 Bug Fixes",
    "perf": "### ⚡ Performance",
    "docs": "### 📚 Documentation",
    "refactor": "### ♻️ Refactoring",
    "test": "### 🧪 Tests",
    "build": "### 📦 Build",
    "ci": "### 🔧 CI",
    "style": "### 💄 Style",
    "chore": "### 🔨 Chores",
    "other": "### 📝 Other",
}


def render_release_notes(
    commits: Sequence[Commit],
    version: str,
    config: SemrelConfig,
    *,
    date: datetime | None = None,
) -> str:
    """Render markdown release notes from commits.

    Breaking changes are listed first, then the remaining commits grouped
    by type in :data:`TYPE_LABELS` order.

    Args:
        commits: Commits included in the release
        version: Version being released
        config: Configuration snapshot
        date: Release date, defaults to today (UTC)

    Returns:
        Markdown text
    """
    date = date or datetime.now(UTC)
    lines = [f"## {version} ({date.strftime('%Y-%m-%d')})", ""]

    parsed = parse_commits(commits, config.commits)
    if not parsed:
        lines.append("No notable changes.")
        return "\n".join(lines) + "\n"

    grouped = group_commits_by_type(parsed)

    breaking = get_breaking_changes(parsed)
    if breaking:
        lines.extend(["### ⚠️ Breaking Changes", ""])
        for pc in breaking:
            scope = f"**{pc.scope}:** " if pc.scope else ""
            lines.append(f"- {scope}{pc.description} ({pc.commit.short_sha})")
        lines.append("")

    for commit_type, label in TYPE_LABELS.items():
        # Breaking changes are already listed above
        commits_of_type = [c for c in grouped.get(commit_type, []) if not c.is_breaking]
        if not commits_of_type:
            continue
        lines.extend([label, ""])
        lines.extend(format_commit_for_changelog(pc, include_sha=True) for pc in commits_of_type)
        lines.append("")

    return "\n".join(lines)


def generate_changelog(
    repo: GitRepository,
    version: str,
    config: SemrelConfig,
    *,
    unreleased_only: bool = True,
    github_repo: str | None = None,
) -> str:
    """Generate release notes using git-cliff.

    Args:
        repo: Git repository instance
        version: Version being released
        config: Configuration snapshot
        unreleased_only: Only generate for unreleased changes
        github_repo: ``owner/repo`` for git-cliff's GitHub integration

    Raises:
        GitCliffError: If git-cliff exits with an error
        ChangelogError: If git-cliff is not installed
    """
    args = ["git-cliff", "--repository", str(repo.path), "--tag", f"{config.tag_prefix}{version}"]
    if unreleased_only:
        args.append("--unreleased")
    if github_repo:
        args.extend(["--github-repo", github_repo])
    args.extend(_cliff_config_args(config))

    try:
        result = subprocess.run(args, capture_output=True, text=True, check=True, cwd=repo.path)
    except FileNotFoundError as e:
        raise ChangelogError("git-cliff not found. Install it with: pip install git-cliff") from e
    except subprocess.CalledProcessError as e:
        raise GitCliffError(
            f"git-cliff failed with exit code {e.returncode}", stderr=e.stderr or ""
        ) from e
    return result.stdout.strip()


_BUMP_RE = re.compile(r"\b(major|minor|patch)\b", re.IGNORECASE)


def get_bump_from_git_cliff(repo: GitRepository, config: SemrelConfig) -> BumpType:
    """Ask git-cliff which bump the unreleased commits need.

    git-cliff reports the bump it applies in its output; no commits to
    process means no bump.
    """
    args = ["git-cliff", "--repository", str(repo.path), "--bumped-version", "--verbose"]
    args.extend(_cliff_config_args(config))

    try:
        result = subprocess.run(args, capture_output=True, text=True, check=True, cwd=repo.path)
    except FileNotFoundError as e:
        raise ChangelogError("git-cliff not found. Install it with: pip install git-cliff") from e
    except subprocess.CalledProcessError as e:
        if e.stderr and "no commits" in e.stderr.lower():
            return BumpType.NONE
        raise GitCliffError(
            f"git-cliff failed with exit code {e.returncode}", stderr=e.stderr or ""
        ) from e

    match = _BUMP_RE.search(f"{result.stdout}\n{result.stderr}")
    if match is None:
        logger.debug("git-cliff reported no bump")
        return BumpType.NONE
    return BumpType(match.group(1).lower())


def _cliff_config_args(config: SemrelConfig) -> list[str]:
    # Use pyproject.toml config if available
    pyproject_path = config.project_path / "pyproject.toml"
    if pyproject_path.exists():
        return ["--config", str(pyproject_path)]
    return []

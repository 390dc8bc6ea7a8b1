"""Git repository access via the git command line.

Commits are returned newest first, the order ``git log`` produces, unless
``oldest_first`` is requested.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from semrel.exceptions import GitError
from semrel.log import get_logger

logger = get_logger(__name__)

# Unit and record separators keep multi-line messages intact.
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = _FIELD_SEP.join(["%H", "%an", "%ae", "%aI", "%B"]) + _RECORD_SEP


@dataclass(frozen=True, slots=True)
class Commit:
    """A single git commit."""

    sha: str
    message: str
    author_name: str
    author_email: str
    date: datetime

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def subject(self) -> str:
        return self.message.split("\n", 1)[0].strip()


class GitRepository:
    """Thin wrapper around a git working tree."""

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path else Path.cwd()
        try:
            toplevel = self._run("rev-parse", "--show-toplevel")
        except GitError as e:
            raise GitError(f"Not a git repository: {self.path}", stderr=e.stderr) from e
        self.root = Path(toplevel)

    def _run(self, *args: str) -> str:
        cmd = ["git", *args]
        try:
            result = subprocess.run(
                cmd,
                cwd=self.path,
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found") from e
        except subprocess.CalledProcessError as e:
            raise GitError(
                f"git {' '.join(args)} failed with exit code {e.returncode}",
                stderr=e.stderr or "",
            ) from e
        return result.stdout.strip()

    def head_sha(self) -> str:
        return self._run("rev-parse", "HEAD")

    def has_commits(self) -> bool:
        """Whether HEAD points at a commit. False in a freshly initialised repository."""
        try:
            self._run("rev-parse", "--verify", "--quiet", "HEAD")
        except GitError:
            return False
        return True

    def current_branch(self) -> str | None:
        """Name of the checked out branch, or None on a detached HEAD."""
        try:
            return self._run("symbolic-ref", "--quiet", "--short", "HEAD")
        except GitError:
            return None

    def is_dirty(self) -> bool:
        return bool(self._run("status", "--porcelain"))

    def remote_url(self, remote: str = "origin") -> str | None:
        try:
            return self._run("remote", "get-url", remote) or None
        except GitError:
            return None

    def list_tags(self, pattern: str = "*", *, merged: bool = True) -> list[str]:
        """List tags matching a glob, optionally only those reachable from HEAD."""
        if merged and not self.has_commits():
            return []
        args = ["tag", "--list", pattern]
        if merged:
            args.extend(["--merged", "HEAD"])
        output = self._run(*args)
        return [line for line in output.splitlines() if line.strip()]

    def list_commits(self, since: str | None = None, *, oldest_first: bool = False) -> list[Commit]:
        """List commits after ``since`` up to HEAD.

        Args:
            since: Tag or sha of the last release. None means all history.
            oldest_first: Return commits in chronological order

        Returns:
            Commits between ``since`` (exclusive) and HEAD (inclusive)
        """
        if not self.has_commits():
            return []

        revision = f"{since}..HEAD" if since else "HEAD"
        args = ["log", f"--format={_LOG_FORMAT}", revision]
        if oldest_first:
            args.insert(1, "--reverse")
        output = self._run(*args)

        commits = []
        for record in output.split(_RECORD_SEP):
            record = record.strip("\n")
            if not record:
                continue
            sha, author_name, author_email, date, message = record.split(_FIELD_SEP, 4)
            commits.append(
                Commit(
                    sha=sha,
                    message=message.strip(),
                    author_name=author_name,
                    author_email=author_email,
                    date=datetime.fromisoformat(date),
                )
            )
        logger.debug("Found %d commits since %s", len(commits), since or "the beginning")
        return commits

"""Shared fixtures for the semrel test suite."""

from __future__ import annotations

import subprocess
from datetime import datetime
from pathlib import Path

import pytest

from semrel.config.models import GitHubConfig, SemrelConfig
from semrel.plugins import ReleaseContext, StrategyRegistry
from semrel.vcs.git import Commit

PYPROJECT = """\
# Project metadata
[project]
name = "test-project"
version = "1.0.0"
description = 'A "quoted" description'
dependencies = ["httpx>=0.27"]

[project.urls]
Repository = "https://github.com/acme/widgets.git"

[tool.semrel]
branch = "main"
"""


def make_commit(sha: str, message: str) -> Commit:
    return Commit(
        sha=sha,
        message=message,
        author_name="Test",
        author_email="test@test.com",
        date=datetime(2024, 1, 1, 12, 0, 0),
    )


class FakeRepo:
    """In-memory stand-in for GitRepository."""

    def __init__(
        self,
        commits: list[Commit] | None = None,
        tags: list[str] | None = None,
        head: str | None = "f" * 40,
        branch: str | None = "main",
        path: Path | None = None,
    ) -> None:
        self.commits = commits or []
        self.tags = tags or []
        self.head = head
        self.branch = branch
        self.path = path or Path.cwd()
        self.since_calls: list[str | None] = []

    def list_commits(self, since: str | None = None, *, oldest_first: bool = False) -> list[Commit]:
        self.since_calls.append(since)
        return list(reversed(self.commits)) if oldest_first else list(self.commits)

    def list_tags(self, pattern: str = "*", *, merged: bool = True) -> list[str]:
        prefix = pattern.rstrip("*")
        return [t for t in self.tags if t.startswith(prefix)]

    def head_sha(self) -> str:
        from semrel.exceptions import GitError

        if self.head is None:
            raise GitError("git rev-parse HEAD failed", stderr="fatal: ambiguous argument 'HEAD'")
        return self.head

    def current_branch(self) -> str | None:
        return self.branch


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True, check=True)
    return result.stdout.strip()


@pytest.fixture
def git():
    """Run git commands in a directory."""
    return _git


@pytest.fixture
def temp_git_repo(tmp_path: Path) -> Path:
    """An initialised git repository with a committer identity."""
    _git(tmp_path, "init", "-q", "-b", "main")
    _git(tmp_path, "config", "user.name", "Test")
    _git(tmp_path, "config", "user.email", "test@test.com")
    _git(tmp_path, "config", "commit.gpgsign", "false")
    _git(tmp_path, "config", "tag.gpgsign", "false")
    return tmp_path


@pytest.fixture
def temp_git_repo_with_pyproject(temp_git_repo: Path) -> Path:
    """A git repository with a committed pyproject.toml."""
    (temp_git_repo / "pyproject.toml").write_text(PYPROJECT)
    _git(temp_git_repo, "add", "pyproject.toml")
    _git(temp_git_repo, "commit", "-q", "-m", "chore: initial commit")
    return temp_git_repo


@pytest.fixture
def feat_commit() -> Commit:
    return make_commit("feat1234567", "feat: add user authentication")


@pytest.fixture
def fix_commit() -> Commit:
    return make_commit("fix1234567", "fix(core): handle empty input")


@pytest.fixture
def breaking_commit() -> Commit:
    return make_commit("break123456", "feat(api)!: remove v1 endpoints")


@pytest.fixture
def sample_commits() -> list[Commit]:
    return [
        make_commit("a000001", "feat: add login"),
        make_commit("a000002", "fix(auth): token refresh"),
        make_commit("a000003", "docs: update readme"),
        make_commit("a000004", "chore: bump deps"),
        make_commit("a000005", "refactor!: drop python 3.10"),
        make_commit("a000006", "Merge branch 'main'"),
    ]


@pytest.fixture
def config(tmp_path: Path) -> SemrelConfig:
    """A dry-run configuration with a known GitHub target."""
    return SemrelConfig(
        project_path=tmp_path,
        debug=True,
        github=GitHubConfig(owner="acme", repo="widgets"),
    )


@pytest.fixture
def release_config(tmp_path: Path) -> SemrelConfig:
    """A publishing (non dry-run) configuration."""
    return SemrelConfig(
        project_path=tmp_path,
        debug=False,
        github=GitHubConfig(owner="acme", repo="widgets", token="s3cret"),
    )


@pytest.fixture
def make_ctx():
    """Build a (context, registry) pair from a config and a fake repo."""

    def factory(config: SemrelConfig, repo: FakeRepo) -> tuple[ReleaseContext, StrategyRegistry]:
        return ReleaseContext(config=config, repo=repo), StrategyRegistry(config)

    return factory


@pytest.fixture
def commit_factory():
    return make_commit


@pytest.fixture
def fake_repo():
    """The FakeRepo class, for building repos with specific history."""
    return FakeRepo


@pytest.fixture
def register_strategy(monkeypatch):
    """Register a strategy for the duration of one test."""
    from semrel.plugins import registry

    def factory(point: str, name: str, fn):
        point = registry.ExtensionPoint(point)
        monkeypatch.setitem(registry._registered[point], name, fn)
        return fn

    return factory

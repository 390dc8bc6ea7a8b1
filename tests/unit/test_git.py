"""Tests for GitRepository against real repositories."""

from __future__ import annotations

from pathlib import Path

import pytest

from semrel.exceptions import GitError
from semrel.vcs import GitRepository


def commit(git, repo: Path, message: str, filename: str = "file.txt") -> None:
    path = repo / filename
    path.write_text(path.read_text() + message + "\n" if path.exists() else message + "\n")
    git(repo, "add", filename)
    git(repo, "commit", "-q", "-m", message)


class TestGitRepository:
    def test_not_a_repository(self, tmp_path: Path):
        with pytest.raises(GitError, match="Not a git repository"):
            GitRepository(tmp_path)

    def test_empty_repository_has_no_commits(self, temp_git_repo: Path):
        repo = GitRepository(temp_git_repo)
        assert not repo.has_commits()
        assert repo.list_commits() == []
        assert repo.list_commits(oldest_first=True) == []
        assert repo.list_tags("v*") == []

    def test_unknown_since_ref_raises(self, temp_git_repo: Path, git):
        commit(git, temp_git_repo, "feat: one")
        repo = GitRepository(temp_git_repo)

        assert repo.has_commits()
        with pytest.raises(GitError):
            repo.list_commits("v9.9.9")

    def test_list_commits_newest_first(self, temp_git_repo: Path, git):
        commit(git, temp_git_repo, "feat: one")
        commit(git, temp_git_repo, "fix: two")

        commits = GitRepository(temp_git_repo).list_commits()

        assert [c.subject for c in commits] == ["fix: two", "feat: one"]
        assert commits[0].author_email == "test@test.com"
        assert len(commits[0].short_sha) == 7

    def test_list_commits_oldest_first(self, temp_git_repo: Path, git):
        commit(git, temp_git_repo, "feat: one")
        commit(git, temp_git_repo, "fix: two")

        commits = GitRepository(temp_git_repo).list_commits(oldest_first=True)

        assert [c.subject for c in commits] == ["feat: one", "fix: two"]

    def test_list_commits_since_tag(self, temp_git_repo: Path, git):
        commit(git, temp_git_repo, "feat: one")
        git(temp_git_repo, "tag", "v1.0.0")
        commit(git, temp_git_repo, "fix: two")

        commits = GitRepository(temp_git_repo).list_commits("v1.0.0")

        assert [c.subject for c in commits] == ["fix: two"]

    def test_multiline_message(self, temp_git_repo: Path, git):
        commit(git, temp_git_repo, "feat: one\n\nBREAKING CHANGE: gone")

        (only,) = GitRepository(temp_git_repo).list_commits()

        assert only.subject == "feat: one"
        assert only.message.endswith("BREAKING CHANGE: gone")

    def test_tags_and_head(self, temp_git_repo: Path, git):
        commit(git, temp_git_repo, "feat: one")
        git(temp_git_repo, "tag", "v1.0.0")
        git(temp_git_repo, "tag", "other")
        repo = GitRepository(temp_git_repo)

        assert repo.list_tags("v*") == ["v1.0.0"]
        assert repo.head_sha() == git(temp_git_repo, "rev-parse", "HEAD")
        assert repo.current_branch() == "main"

    def test_detached_head_has_no_branch(self, temp_git_repo: Path, git):
        commit(git, temp_git_repo, "feat: one")
        git(temp_git_repo, "checkout", "-q", "--detach")

        assert GitRepository(temp_git_repo).current_branch() is None

    def test_dirty_and_remote(self, temp_git_repo: Path, git):
        commit(git, temp_git_repo, "feat: one")
        repo = GitRepository(temp_git_repo)
        assert not repo.is_dirty()
        assert repo.remote_url() is None

        (temp_git_repo / "untracked.txt").write_text("x")
        git(temp_git_repo, "remote", "add", "origin", "git@github.com:acme/widgets.git")

        assert repo.is_dirty()
        assert repo.remote_url() == "git@github.com:acme/widgets.git"

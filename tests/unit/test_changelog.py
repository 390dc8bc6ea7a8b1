"""Unit tests for release notes rendering."""

from __future__ import annotations

import subprocess
from datetime import datetime
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest

from semrel.core.changelog import generate_changelog, get_bump_from_git_cliff, render_release_notes
from semrel.core.version import BumpType
from semrel.exceptions import ChangelogError, GitCliffError
from semrel.vcs.git import GitRepository

if TYPE_CHECKING:
    from pathlib import Path

    from semrel.config.models import SemrelConfig

RELEASE_DATE = datetime(2024, 3, 1)


@pytest.fixture
def mock_repo(tmp_path: Path) -> MagicMock:
    """A GitRepository double rooted at tmp_path."""
    repo = MagicMock(spec=GitRepository)
    repo.path = tmp_path
    return repo


@pytest.fixture
def with_pyproject(tmp_path: Path) -> Path:
    path = tmp_path / "pyproject.toml"
    path.write_text("[project]\nname = 'test'\n")
    return path


def cliff_output(stdout: str = "", stderr: str = "") -> MagicMock:
    return MagicMock(stdout=stdout, stderr=stderr, returncode=0)


class TestRenderReleaseNotes:
    """Tests for the built-in markdown renderer."""

    def test_heading_has_version_and_date(self, config: SemrelConfig, feat_commit):
        notes = render_release_notes([feat_commit], "1.3.0", config, date=RELEASE_DATE)
        assert notes.startswith("## 1.3.0 (2024-03-01)")

    def test_empty_release(self, config: SemrelConfig):
        notes = render_release_notes([], "1.0.1", config, date=RELEASE_DATE)
        assert "No notable changes." in notes

    def test_grouped_by_type(self, config: SemrelConfig, feat_commit, fix_commit):
        notes = render_release_notes([fix_commit, feat_commit], "1.3.0", config, date=RELEASE_DATE)

        assert "### ✨ Features" in notes
        assert "### 🐛 Bug Fixes" in notes
        assert notes.index("Features") < notes.index("Bug Fixes")
        assert "- add user authentication (feat123)" in notes
        assert "- **core:** handle empty input (fix1234)" in notes

    def test_breaking_changes_listed_first_and_once(self, config: SemrelConfig, feat_commit, breaking_commit):
        notes = render_release_notes([feat_commit, breaking_commit], "2.0.0", config, date=RELEASE_DATE)

        assert notes.index("Breaking Changes") < notes.index("Features")
        assert notes.count("remove v1 endpoints") == 1

    def test_non_conventional_commits_under_other(self, config: SemrelConfig, commit_factory):
        notes = render_release_notes(
            [commit_factory("abcdef0123", "Tidy things up")], "1.0.1", config, date=RELEASE_DATE
        )
        assert "### 📝 Other" in notes
        assert "- Tidy things up (abcdef0)" in notes


class TestGenerateChangelog:
    """Tests for generate_changelog with git-cliff."""

    def test_returns_git_cliff_output(self, mock_repo: MagicMock, config: SemrelConfig, with_pyproject: Path):
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = cliff_output("## [1.0.0] - 2024-01-01\n\n### Features\n\n- New feature\n")

            result = generate_changelog(mock_repo, "1.0.0", config)

            assert result.startswith("## [1.0.0]")
            mock_run.assert_called_once()

    def test_arguments(self, mock_repo: MagicMock, config: SemrelConfig, with_pyproject: Path):
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = cliff_output("changelog")

            generate_changelog(mock_repo, "1.0.0", config, github_repo="acme/widgets")

            args = mock_run.call_args[0][0]
            assert args[0] == "git-cliff"
            assert args[args.index("--tag") + 1] == "v1.0.0"
            assert "--unreleased" in args
            assert args[args.index("--github-repo") + 1] == "acme/widgets"
            assert args[args.index("--config") + 1] == str(with_pyproject)

    def test_optional_arguments_omitted(self, mock_repo: MagicMock, config: SemrelConfig):
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = cliff_output("changelog")

            generate_changelog(mock_repo, "1.0.0", config, unreleased_only=False)

            args = mock_run.call_args[0][0]
            assert "--unreleased" not in args
            assert "--github-repo" not in args
            assert "--config" not in args

    def test_git_cliff_not_found(self, mock_repo: MagicMock, config: SemrelConfig):
        with patch("subprocess.run", side_effect=FileNotFoundError("git-cliff")):
            with pytest.raises(ChangelogError, match="git-cliff not found"):
                generate_changelog(mock_repo, "1.0.0", config)

    def test_git_cliff_failure(self, mock_repo: MagicMock, config: SemrelConfig):
        error = subprocess.CalledProcessError(1, "git-cliff", stderr="Invalid config")
        with patch("subprocess.run", side_effect=error):
            with pytest.raises(GitCliffError) as exc_info:
                generate_changelog(mock_repo, "1.0.0", config)

        assert exc_info.value.stderr == "Invalid config"


class TestGetBumpFromGitCliff:
    """Tests for get_bump_from_git_cliff."""

    @pytest.mark.parametrize(
        ("stdout", "stderr", "expected"),
        [
            ("", "Bumping major version", BumpType.MAJOR),
            ("Detected minor bump", "", BumpType.MINOR),
            ("patch version", "", BumpType.PATCH),
            ("", "", BumpType.NONE),
        ],
    )
    def test_bump_from_output(self, mock_repo: MagicMock, config: SemrelConfig, stdout, stderr, expected):
        with patch("subprocess.run", return_value=cliff_output(stdout, stderr)):
            assert get_bump_from_git_cliff(mock_repo, config) == expected

    def test_no_commits_is_no_bump(self, mock_repo: MagicMock, config: SemrelConfig):
        error = subprocess.CalledProcessError(1, "git-cliff", stderr="no commits to process")
        with patch("subprocess.run", side_effect=error):
            assert get_bump_from_git_cliff(mock_repo, config) == BumpType.NONE

    def test_other_failures_raise(self, mock_repo: MagicMock, config: SemrelConfig):
        error = subprocess.CalledProcessError(1, "git-cliff", stderr="Invalid configuration")
        with patch("subprocess.run", side_effect=error):
            with pytest.raises(GitCliffError):
                get_bump_from_git_cliff(mock_repo, config)

    def test_git_cliff_not_found(self, mock_repo: MagicMock, config: SemrelConfig):
        with patch("subprocess.run", side_effect=FileNotFoundError("git-cliff")):
            with pytest.raises(ChangelogError, match="git-cliff not found"):
                get_bump_from_git_cliff(mock_repo, config)

"""Pre-flight checks on the configuration snapshot.

All problems are collected and reported together before any pipeline step
runs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from semrel.exceptions import ConfigurationError, ProjectError

if TYPE_CHECKING:
    from semrel.config.models import SemrelConfig

Phase = Literal["pre", "post"]


def verify_config(config: SemrelConfig, phase: Phase) -> list[ConfigurationError]:
    """Return every configuration problem for the given phase."""
    errors: list[ConfigurationError] = []

    if phase == "pre":
        from semrel.project.pyproject import get_version_from_file

        # Every version file must hold a version before pyproject.toml is touched.
        for version_file in config.version_files:
            try:
                get_version_from_file(config.project_path / version_file)
            except ProjectError as e:
                errors.append(ConfigurationError(f"Version file {version_file}: {e}"))

    if phase == "post":
        if not config.github.owner or not config.github.repo:
            errors.append(
                ConfigurationError(
                    "Could not determine the GitHub repository. Add a Repository entry to "
                    "[project.urls], set [tool.semrel.github] owner and repo, or add an "
                    "'origin' remote."
                )
            )
        if not config.dry_run and not config.github_token:
            errors.append(
                ConfigurationError("No GitHub token specified. Set GH_TOKEN or GITHUB_TOKEN.")
            )

    return errors

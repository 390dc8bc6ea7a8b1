"""Exception hierarchy for semrel.

Every error carries the process exit code the CLI should use when it
reaches the top of a command, so callers can tell "nothing to release"
apart from a broken run.
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes."""

    OK = 0
    FAILURE = 1
    USAGE = 2
    NO_CHANGES = 3
    DRY_RUN = 4


class SemrelError(Exception):
    """Base exception for all semrel errors."""

    exit_code: ExitCode = ExitCode.FAILURE

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# =============================================================================
# Configuration
# =============================================================================


class ConfigurationError(SemrelError):
    """Invalid configuration, unloadable strategy or malformed task graph."""


class ConfigNotFoundError(ConfigurationError):
    """pyproject.toml could not be located."""


class ConfigValidationError(ConfigurationError):
    """Configuration values failed validation."""


# =============================================================================
# Version determination
# =============================================================================


class NoQualifyingChangesError(SemrelError):
    """No commit since the last release warrants a new version."""

    exit_code = ExitCode.NO_CHANGES


class ReleaseRejectedError(SemrelError):
    """The verify-release strategy vetoed the computed release."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Release rejected: {reason}")


class StepTimeoutError(SemrelError):
    """A task graph step exceeded its timeout."""

    def __init__(self, step: str, timeout: float) -> None:
        self.step = step
        self.timeout = timeout
        super().__init__(f"Step '{step}' timed out after {timeout:g}s")


# =============================================================================
# Publication
# =============================================================================


class ReleasePointUnresolvedError(SemrelError):
    """The commit the release should point at could not be determined."""


class PublishError(SemrelError):
    """The hosting platform could not be reached or refused the release."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


# =============================================================================
# Collaborators
# =============================================================================


class GitError(SemrelError):
    """A git command failed."""

    def __init__(self, message: str, *, stderr: str = "") -> None:
        self.stderr = stderr
        super().__init__(message)


class ProjectError(SemrelError):
    """Reading or writing project files failed."""


class VersionNotFoundError(ProjectError):
    """No version could be found in a project file."""


class ChangelogError(SemrelError):
    """Release notes could not be generated."""


class GitCliffError(ChangelogError):
    """git-cliff exited with an error."""

    def __init__(self, message: str, *, stderr: str = "") -> None:
        self.stderr = stderr
        super().__init__(message)

"""Configuration models.

The configuration is a frozen snapshot: it is built once per invocation by
:func:`semrel.config.loader.load_config` and only read afterwards.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

EXTENSION_POINT_FIELDS = (
    "verify_conditions",
    "get_last_release",
    "analyze_commits",
    "generate_notes",
    "verify_release",
)

# Dot-separated semver prerelease identifiers, e.g. "rc.1"
_PRERELEASE_RE = re.compile(r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*")


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class CommitsConfig(_Frozen):
    """How commits are classified."""

    types_major: list[str] = Field(default_factory=list)
    types_minor: list[str] = Field(default_factory=lambda: ["feat"])
    types_patch: list[str] = Field(default_factory=lambda: ["fix", "perf"])
    breaking_pattern: str = r"BREAKING[ -]CHANGE:"
    scope_regex: str | None = None
    skip_release_patterns: list[str] = Field(
        default_factory=lambda: ["[skip release]", "[release skip]", "[no release]"]
    )
    order: Literal["newest-first", "oldest-first"] = "newest-first"


class GitHubConfig(_Frozen):
    """Hosting platform settings."""

    owner: str | None = None
    repo: str | None = None
    api_url: str = "https://api.github.com"
    token: SecretStr | None = None


class PluginsConfig(_Frozen):
    """Strategy spec per extension point.

    A spec is a registered name (``"default"``, ``"git-cliff"``), a
    ``module:attribute`` reference, or ``path/to/file.py:attribute``.
    """

    verify_conditions: str | None = Field(default=None, alias="verify-conditions")
    get_last_release: str | None = Field(default=None, alias="get-last-release")
    analyze_commits: str | None = Field(default=None, alias="analyze-commits")
    generate_notes: str | None = Field(default=None, alias="generate-notes")
    verify_release: str | None = Field(default=None, alias="verify-release")

    def get(self, field_name: str) -> str | None:
        return getattr(self, field_name)


class SemrelConfig(_Frozen):
    """Complete configuration snapshot for one run."""

    project_path: Path = Field(default_factory=Path.cwd)
    branch: str = "main"
    debug: bool = True
    prerelease: bool = False
    dist_tag: str = "latest"
    append: str | None = None
    tag_prefix: str = "v"
    version_files: list[Path] = Field(default_factory=list)
    allow_dirty: bool = True
    commits: CommitsConfig = Field(default_factory=CommitsConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    # Declared in [tool.semrel.plugins]
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    # Supplied on the command line or through SEMREL_<EXTENSION_POINT>
    plugin_overrides: PluginsConfig = Field(default_factory=PluginsConfig)

    @field_validator("append")
    @classmethod
    def _check_append(cls, value: str | None) -> str | None:
        if value is not None and not _PRERELEASE_RE.fullmatch(value):
            raise ValueError(
                f"append must be dot-separated prerelease identifiers [0-9A-Za-z-], got {value!r}"
            )
        return value

    @property
    def dry_run(self) -> bool:
        return self.debug

    @property
    def github_token(self) -> str | None:
        return self.github.token.get_secret_value() if self.github.token else None

    @property
    def tag_pattern(self) -> str:
        return f"{self.tag_prefix}*"

    def redacted(self) -> dict:
        """Configuration as a dict with secrets masked, for logging."""
        data = self.model_dump(mode="json")
        if self.github.token is not None:
            data["github"]["token"] = "***"
        return data

"""Release records passed between pipeline stages.

All records are immutable; each stage builds a new record for the next one.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from semrel.core.version import BumpType, Version

if TYPE_CHECKING:
    from semrel.vcs.git import Commit

INITIAL_VERSION = "1.0.0"


@dataclass(frozen=True, slots=True)
class LastRelease:
    """The most recent release and where history scanning stops."""

    version: str
    ref: str

    @property
    def parsed_version(self) -> Version:
        return Version.parse(self.version)


@dataclass(frozen=True, slots=True)
class NextRelease:
    """The release about to be made."""

    type: BumpType
    version: str

    def with_suffix(self, suffix: str) -> NextRelease:
        """Append ``-<suffix>`` to the version."""
        return replace(self, version=f"{self.version}-{suffix}")

    def tag_name(self, prefix: str) -> str:
        return f"{prefix}{self.version}"


@dataclass(frozen=True, slots=True)
class PreResult:
    """Outcome of the version determination pipeline."""

    last_release: LastRelease | None
    commits: tuple[Commit, ...]
    next_release: NextRelease


@dataclass(frozen=True, slots=True)
class ReleaseNotes:
    """Rendered notes plus what is needed to publish them."""

    body: str
    tag_name: str
    target_commitish: str | None = None
    draft: bool = False
    prerelease: bool = False


@dataclass(frozen=True, slots=True)
class ReleasePayload:
    """Request body for creating a hosted release."""

    owner: str
    repo: str
    tag_name: str
    name: str
    target_commitish: str
    body: str
    draft: bool
    prerelease: bool

    def to_api(self) -> dict[str, Any]:
        return {
            "tag_name": self.tag_name,
            "name": self.name,
            "target_commitish": self.target_commitish,
            "body": self.body,
            "draft": self.draft,
            "prerelease": self.prerelease,
        }


@dataclass(frozen=True, slots=True)
class PublishResult:
    """Outcome of the publication pipeline."""

    published: bool
    payload: ReleasePayload
    release_id: int | None = None
    html_url: str | None = None
    notes: ReleaseNotes | None = field(default=None, compare=False)

"""Semantic version parsing and bumping.

Versions follow SemVer 2.0.0: ``MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]``.
Ordering ignores build metadata and ranks a pre-release below the
corresponding normal version.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from functools import total_ordering

from semrel.exceptions import ConfigValidationError

_SEMVER_RE = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


class BumpType(StrEnum):
    """How much a version must increase."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    NONE = "none"
    INITIAL = "initial"

    @property
    def rank(self) -> int:
        return _BUMP_RANK[self]


_BUMP_RANK = {
    BumpType.NONE: 0,
    BumpType.PATCH: 1,
    BumpType.MINOR: 2,
    BumpType.MAJOR: 3,
    BumpType.INITIAL: 4,
}


def _prerelease_key(prerelease: str | None) -> tuple:
    # A version without pre-release sorts after any pre-release of it.
    if prerelease is None:
        return (1,)
    parts = []
    for ident in prerelease.split("."):
        if ident.isdigit():
            parts.append((0, int(ident), ""))
        else:
            parts.append((1, 0, ident))
    return (0, tuple(parts))


@total_ordering
@dataclass(frozen=True, slots=True)
class Version:
    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = None

    @classmethod
    def parse(cls, value: str) -> Version:
        """Parse a version string, tolerating a leading ``v``.

        Raises:
            ConfigValidationError: If the string is not a semantic version
        """
        match = _SEMVER_RE.match(value.strip())
        if match is None:
            raise ConfigValidationError(f"Invalid semantic version: {value!r}")
        return cls(
            int(match.group("major")),
            int(match.group("minor")),
            int(match.group("patch")),
            match.group("prerelease"),
            match.group("build"),
        )

    def bump(self, bump_type: BumpType) -> Version:
        """Return the next version for a bump type.

        A pre-release of the target version is promoted instead of skipped,
        e.g. ``2.0.0-rc.1`` bumped by ``major`` becomes ``2.0.0``.
        """
        if bump_type is BumpType.MAJOR:
            if self.prerelease and self.minor == 0 and self.patch == 0:
                return Version(self.major, 0, 0)
            return Version(self.major + 1, 0, 0)
        if bump_type is BumpType.MINOR:
            if self.prerelease and self.patch == 0:
                return Version(self.major, self.minor, 0)
            return Version(self.major, self.minor + 1, 0)
        if bump_type is BumpType.PATCH:
            if self.prerelease:
                return Version(self.major, self.minor, self.patch)
            return Version(self.major, self.minor, self.patch + 1)
        raise ValueError(f"Cannot bump a version by {bump_type.value!r}")

    def _key(self) -> tuple:
        return (self.major, self.minor, self.patch, _prerelease_key(self.prerelease))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text


def is_valid_version(value: str) -> bool:
    return _SEMVER_RE.match(value.strip()) is not None

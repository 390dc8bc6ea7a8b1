"""GitHub integration."""

from __future__ import annotations

from semrel.github.client import GitHubClient, HostedRelease, parse_repo_slug

__all__ = ["GitHubClient", "HostedRelease", "parse_repo_slug"]

"""GitHub REST client for creating releases.

Only the one endpoint semrel needs is wrapped. Works against github.com
and GitHub Enterprise (``github.api_url``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from semrel.exceptions import PublishError
from semrel.log import get_logger

if TYPE_CHECKING:
    from semrel.core.models import ReleasePayload

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0
API_VERSION = "2022-11-28"

_SLUG_RE = re.compile(
    r"""
    (?:^|[/:])                  # start, or the separator before the owner
    (?P<owner>[A-Za-z0-9_.-]+)
    /
    (?P<repo>[A-Za-z0-9_.-]+?)
    (?:\.git)?/?$
    """,
    re.VERBOSE,
)


def parse_repo_slug(url: str) -> tuple[str, str] | None:
    """Extract ``(owner, repo)`` from a repository URL.

    Handles ``https://host/owner/repo(.git)``, ``git@host:owner/repo.git``,
    ``git+https://...`` and a bare ``owner/repo``.
    """
    url = url.strip()
    if url.startswith("git+"):
        url = url[4:]
    url = re.sub(r"/(tree|blob)/.*$", "", url)
    match = _SLUG_RE.search(url)
    if match is None:
        return None
    return match.group("owner"), match.group("repo")


@dataclass(frozen=True, slots=True)
class HostedRelease:
    id: int
    html_url: str | None = None


class GitHubClient:
    """Minimal async GitHub API client."""

    def __init__(
        self,
        token: str | None,
        api_url: str = "https://api.github.com",
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": "semrel",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def create_release(self, payload: ReleasePayload) -> HostedRelease:
        """Create a release.

        Raises:
            PublishError: If the API cannot be reached or rejects the request
        """
        url = f"{self.api_url}/repos/{payload.owner}/{payload.repo}/releases"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, headers=self._headers(), json=payload.to_api())
        except httpx.TransportError as e:
            raise PublishError(f"Could not reach GitHub at {self.api_url}: {e}") from e

        if not resp.is_success:
            logger.error(
                "GitHub returned %d creating release %s: %s",
                resp.status_code,
                payload.tag_name,
                resp.text,
            )
            raise PublishError(
                f"GitHub rejected release {payload.tag_name} with HTTP {resp.status_code}",
                status_code=resp.status_code,
                body=resp.text[:500],
            )

        try:
            data = resp.json()
            release_id = int(data["id"])
        except (ValueError, KeyError, TypeError) as e:
            raise PublishError(
                f"GitHub returned HTTP {resp.status_code} for {payload.tag_name} without a release id",
                status_code=resp.status_code,
                body=resp.text[:500],
            ) from e
        logger.info("Created release %s (id %s)", payload.tag_name, release_id)
        return HostedRelease(id=release_id, html_url=data.get("html_url"))

"""Configuration loading.

Every option is resolved with the same precedence:

    command line > environment > [tool.semrel] in pyproject.toml > default

The result is a frozen :class:`SemrelConfig`; nothing else in semrel reads
the process environment.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from semrel.config.models import EXTENSION_POINT_FIELDS, SemrelConfig
from semrel.exceptions import ConfigNotFoundError, ConfigValidationError, GitError
from semrel.log import get_logger

logger = get_logger(__name__)

TOOL_KEY = "semrel"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

# Keys in [project.urls] that may point at the hosted repository, in order of preference.
_REPOSITORY_URL_KEYS = ("repository", "source", "source code", "code", "github", "homepage")


def find_pyproject_toml(start: Path | None = None) -> Path:
    """Find pyproject.toml in ``start`` or any of its parents.

    Raises:
        ConfigNotFoundError: If no pyproject.toml is found
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    raise ConfigNotFoundError(f"No pyproject.toml found in {current} or its parents")


def load_pyproject_toml(path: Path) -> dict[str, Any]:
    """Parse a pyproject.toml file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"pyproject.toml not found: {path}")
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e


def extract_semrel_config(pyproject: Mapping[str, Any]) -> dict[str, Any]:
    """Return the [tool.semrel] table, or an empty dict."""
    return dict(pyproject.get("tool", {}).get(TOOL_KEY, {}))


def get_repository_url(pyproject: Mapping[str, Any]) -> str | None:
    """Pick the repository URL out of [project.urls]."""
    urls = {str(k).lower(): v for k, v in pyproject.get("project", {}).get("urls", {}).items()}
    for key in _REPOSITORY_URL_KEYS:
        if urls.get(key):
            return str(urls[key])
    return None


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigValidationError(f"Expected a boolean, got {value!r}")


def env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    """Translate environment variables into a config fragment."""
    data: dict[str, Any] = {}
    github: dict[str, Any] = {}
    plugins: dict[str, Any] = {}

    # An empty variable counts as unset for every option.
    if env.get("SEMREL_BRANCH"):
        data["branch"] = env["SEMREL_BRANCH"]
    if env.get("SEMREL_DEBUG"):
        data["debug"] = parse_bool(env["SEMREL_DEBUG"])
    if env.get("SEMREL_PRERELEASE"):
        data["prerelease"] = parse_bool(env["SEMREL_PRERELEASE"])
    if env.get("SEMREL_DIST_TAG"):
        data["dist_tag"] = env["SEMREL_DIST_TAG"]
    if env.get("SEMREL_APPEND"):
        data["append"] = env["SEMREL_APPEND"]

    token = env.get("GH_TOKEN") or env.get("GITHUB_TOKEN")
    if token:
        github["token"] = token
    api_url = env.get("GH_URL") or env.get("GITHUB_API_URL")
    if api_url:
        github["api_url"] = api_url

    for field_name in EXTENSION_POINT_FIELDS:
        value = env.get(f"SEMREL_{field_name.upper()}")
        if value:
            plugins[field_name] = value

    if github:
        data["github"] = github
    if plugins:
        data["plugin_overrides"] = plugins
    return data


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _deep_merge(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def _resolve_repository(
    data: dict[str, Any], pyproject: Mapping[str, Any], project_path: Path
) -> None:
    from semrel.github.client import parse_repo_slug
    from semrel.vcs.git import GitRepository

    github = dict(data.get("github", {}))
    if github.get("owner") and github.get("repo"):
        return

    url = get_repository_url(pyproject)
    if url is None:
        try:
            url = GitRepository(project_path).remote_url()
        except GitError as e:
            logger.debug("No git remote available: %s", e)
    if url is None:
        return

    slug = parse_repo_slug(url)
    if slug is None:
        logger.debug("Could not parse owner/repo from %s", url)
        return
    github.setdefault("owner", slug[0])
    github.setdefault("repo", slug[1])
    data["github"] = github


def load_config(
    path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> SemrelConfig:
    """Build the configuration snapshot.

    Args:
        path: Project directory or pyproject.toml path
        overrides: Options given on the command line. Strategy specs go in
                   ``plugin_overrides``.
        env: Environment to read. Defaults to ``os.environ``.

    Returns:
        Frozen configuration

    Raises:
        ConfigNotFoundError: If pyproject.toml cannot be found
        ConfigValidationError: If any layer holds invalid values
    """
    env = os.environ if env is None else env
    start = path or Path.cwd()
    pyproject_path = find_pyproject_toml(start) if start.is_dir() else start
    pyproject = load_pyproject_toml(pyproject_path)
    project_path = pyproject_path.parent

    data: dict[str, Any] = {"project_path": project_path}
    data = _deep_merge(data, extract_semrel_config(pyproject))
    data = _deep_merge(data, env_overrides(env))
    data = _deep_merge(data, overrides or {})

    if "debug" not in data:
        data["debug"] = "CI" not in env

    _resolve_repository(data, pyproject, project_path)

    try:
        config = SemrelConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid configuration in {pyproject_path}:\n{e}") from e

    logger.debug("Loaded configuration: %s", config.redacted())
    return config

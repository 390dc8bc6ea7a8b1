"""Strategy registry.

Each of the five extension points is bound to exactly one callable. The
binding is looked up in this order:

1. an explicit override (command line or ``SEMREL_<EXTENSION_POINT>``)
2. the project's ``[tool.semrel.plugins]`` table
3. the built-in ``"default"`` strategy

A spec names a registered strategy (``"git-cliff"``), an installed
entry point in the ``semrel.plugins`` group (``<extension-point>.<name>``),
an importable ``module:attribute``, or a local ``path/to/file.py:attribute``.
"""

from __future__ import annotations

import importlib
import importlib.metadata
import importlib.util
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from semrel.exceptions import ConfigurationError
from semrel.log import get_logger

if TYPE_CHECKING:
    from semrel.config.models import SemrelConfig
    from semrel.core.models import LastRelease, NextRelease
    from semrel.core.version import BumpType
    from semrel.vcs.git import Commit, GitRepository

logger = get_logger(__name__)

ENTRY_POINT_GROUP = "semrel.plugins"
DEFAULT_NAME = "default"


class ExtensionPoint(StrEnum):
    VERIFY_CONDITIONS = "verify-conditions"
    GET_LAST_RELEASE = "get-last-release"
    ANALYZE_COMMITS = "analyze-commits"
    GENERATE_NOTES = "generate-notes"
    VERIFY_RELEASE = "verify-release"

    @property
    def attr(self) -> str:
        """Snake case name, used for config fields and default attribute names."""
        return self.value.replace("-", "_")


@dataclass(frozen=True, slots=True)
class ReleaseContext:
    """What every strategy receives: the config snapshot and the commit source."""

    config: SemrelConfig
    repo: GitRepository


class VerifyConditions(Protocol):
    def __call__(self, ctx: ReleaseContext) -> Any: ...


class GetLastRelease(Protocol):
    def __call__(self, ctx: ReleaseContext) -> LastRelease | None: ...


class AnalyzeCommits(Protocol):
    def __call__(self, ctx: ReleaseContext, commits: Sequence[Commit]) -> BumpType | str: ...


class GenerateNotes(Protocol):
    def __call__(
        self, ctx: ReleaseContext, commits: Sequence[Commit], next_release: NextRelease
    ) -> str: ...


class VerifyRelease(Protocol):
    def __call__(
        self,
        ctx: ReleaseContext,
        commits: Sequence[Commit],
        last_release: LastRelease | None,
        next_release: NextRelease,
    ) -> str | None: ...


Strategy = Callable[..., Any]

_registered: dict[ExtensionPoint, dict[str, Strategy]] = {point: {} for point in ExtensionPoint}


def register(point: ExtensionPoint | str, name: str, fn: Strategy) -> Strategy:
    """Register a strategy under a name for an extension point."""
    point = ExtensionPoint(point)
    if not callable(fn):
        raise ConfigurationError(f"Strategy {name!r} for {point} is not callable")
    _registered[point][name] = fn
    return fn


def strategy(point: ExtensionPoint | str, name: str = DEFAULT_NAME) -> Callable[[Strategy], Strategy]:
    """Decorator form of :func:`register`."""

    def deco(fn: Strategy) -> Strategy:
        return register(point, name, fn)

    return deco


def registered_names(point: ExtensionPoint | str) -> list[str]:
    return sorted(_registered[ExtensionPoint(point)])


def _load_entry_point(point: ExtensionPoint, name: str) -> Strategy | None:
    matches = importlib.metadata.entry_points(group=ENTRY_POINT_GROUP, name=f"{point}.{name}")
    for ep in matches:
        try:
            return ep.load()
        except Exception as e:  # noqa: BLE001
            raise ConfigurationError(
                f"Failed to load {point} strategy from entry point {ep.value!r}: {e}"
            ) from e
    return None


def _load_file(point: ExtensionPoint, path: Path, spec: str) -> Any:
    if not path.is_file():
        raise ConfigurationError(f"{point} strategy module not found: {spec!r} ({path})")
    module_spec = importlib.util.spec_from_file_location(f"semrel_strategy_{point.attr}", path)
    if module_spec is None or module_spec.loader is None:
        raise ConfigurationError(f"Cannot load {point} strategy from {path}")
    module = importlib.util.module_from_spec(module_spec)
    try:
        module_spec.loader.exec_module(module)
    except Exception as e:  # noqa: BLE001
        raise ConfigurationError(f"Failed to load {point} strategy from {spec!r}: {e}") from e
    return module


def load_strategy(point: ExtensionPoint, spec: str, project_path: Path) -> Strategy:
    """Turn a strategy spec into a callable.

    Raises:
        ConfigurationError: If the spec cannot be located, imported or is not callable
    """
    if spec in _registered[point]:
        return _registered[point][spec]

    fn = _load_entry_point(point, spec)
    if fn is not None:
        return fn

    module_name, _, attr = spec.partition(":")
    attr = attr or point.attr
    if module_name.endswith(".py") or "/" in module_name:
        module = _load_file(point, project_path / module_name, spec)
    elif (project_path / f"{module_name.replace('.', '/')}.py").is_file():
        module = _load_file(point, project_path / f"{module_name.replace('.', '/')}.py", spec)
    else:
        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise ConfigurationError(
                f"Cannot find {point} strategy {spec!r}: {e}. "
                f"Registered strategies: {', '.join(registered_names(point)) or 'none'}"
            ) from e

    fn = getattr(module, attr, None)
    if fn is None:
        raise ConfigurationError(f"{point} strategy {spec!r} has no attribute {attr!r}")
    if not callable(fn):
        raise ConfigurationError(f"{point} strategy {spec!r}: {attr!r} is not callable")
    return fn


class StrategyRegistry:
    """Resolves and caches one strategy per extension point for a run."""

    def __init__(self, config: SemrelConfig) -> None:
        self.config = config
        self._cache: dict[ExtensionPoint, Strategy] = {}

    def spec_for(self, point: ExtensionPoint | str) -> tuple[str, str]:
        """Return ``(spec, source)`` where source is override, project or builtin."""
        point = ExtensionPoint(point)
        override = self.config.plugin_overrides.get(point.attr)
        if override:
            return override, "override"
        declared = self.config.plugins.get(point.attr)
        if declared:
            return declared, "project"
        return DEFAULT_NAME, "builtin"

    def resolve(self, point: ExtensionPoint | str) -> Strategy:
        point = ExtensionPoint(point)
        if point in self._cache:
            return self._cache[point]
        spec, source = self.spec_for(point)
        fn = load_strategy(point, spec, self.config.project_path)
        logger.debug("Resolved %s to %r (%s)", point, spec, source)
        self._cache[point] = fn
        return fn

    def resolve_all(self) -> dict[ExtensionPoint, Strategy]:
        """Resolve every extension point up front, so failures surface before any step runs."""
        return {point: self.resolve(point) for point in ExtensionPoint}

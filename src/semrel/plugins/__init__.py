"""Pluggable strategies for the five pipeline extension points."""

from __future__ import annotations

from semrel.plugins.registry import (
    ExtensionPoint,
    ReleaseContext,
    StrategyRegistry,
    load_strategy,
    register,
    registered_names,
    strategy,
)

# Registers the built-in strategies.
from semrel.plugins import builtin  # noqa: E402,F401  isort: skip

__all__ = [
    "ExtensionPoint",
    "ReleaseContext",
    "StrategyRegistry",
    "load_strategy",
    "register",
    "registered_names",
    "strategy",
]

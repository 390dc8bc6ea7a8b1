"""Configuration management for semrel."""

from __future__ import annotations

from semrel.config.loader import load_config
from semrel.config.models import (
    CommitsConfig,
    GitHubConfig,
    PluginsConfig,
    SemrelConfig,
)

__all__ = [
    "CommitsConfig",
    "GitHubConfig",
    "PluginsConfig",
    "SemrelConfig",
    "load_config",
]

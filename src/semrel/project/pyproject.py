"""pyproject.toml version manipulation.

This module reads and updates the version number in pyproject.toml and
in extra version files.

Updates are targeted regex replacements on the raw bytes, so comments,
formatting, line endings and every other field survive unchanged.
"""

from __future__ import annotations

import re
from pathlib import Path

from semrel.config.loader import find_pyproject_toml
from semrel.exceptions import ProjectError, VersionNotFoundError
from semrel.log import get_logger

logger = get_logger(__name__)

# [project] first (PEP 621), then Poetry's [tool.poetry].
_SECTIONS = (r"\[project\]", r"\[tool\.poetry\]")
_VERSION_LINE = r'^(version\s*=\s*)(["\'])([^"\']+)\2'

_VERSION_FILE_PATTERNS = (
    r'^(__version__\s*=\s*)(["\'])([^"\']+)\2',
    r'^(VERSION\s*=\s*)(["\'])([^"\']+)\2',
    r'^(version\s*=\s*)(["\'])([^"\']+)\2',
)


def _resolve(path: Path | None) -> Path:
    if path is None:
        return find_pyproject_toml()
    if path.is_dir():
        return find_pyproject_toml(path)
    return path


def _read(path: Path) -> str:
    try:
        # Bytes in, bytes out: no newline translation.
        return path.read_bytes().decode("utf-8")
    except FileNotFoundError as e:
        raise ProjectError(f"File not found: {path}") from e


def _section_span(content: str, header: str) -> tuple[int, int] | None:
    match = re.search(rf"^{header}[ \t]*\r?$.*?(?=^\[|\Z)", content, re.MULTILINE | re.DOTALL)
    if match is None:
        return None
    return match.span()


def _find_version(content: str) -> tuple[int, int, str] | None:
    """Locate the version value: (start, end, value) of the text between the quotes."""
    for header in _SECTIONS:
        span = _section_span(content, header)
        if span is None:
            continue
        section = content[span[0] : span[1]]
        match = re.search(_VERSION_LINE, section, re.MULTILINE)
        if match:
            return span[0] + match.start(3), span[0] + match.end(3), match.group(3)
    return None


def get_pyproject_version(path: Path | None = None) -> str:
    """Get the version from pyproject.toml.

    Args:
        path: Path to pyproject.toml or directory to search from

    Raises:
        VersionNotFoundError: If version cannot be found
    """
    pyproject_path = _resolve(path)
    found = _find_version(_read(pyproject_path))
    if found is None:
        raise VersionNotFoundError(
            f"Could not find version in {pyproject_path}. "
            "Expected [project].version or [tool.poetry].version."
        )
    return found[2]


def update_pyproject_version(path: Path | None, new_version: str) -> Path:
    """Set the version in pyproject.toml.

    Only the characters of the version value change. Writing the version the
    file already has is a no-op.

    Args:
        path: Path to pyproject.toml or directory containing it
        new_version: New version string to set

    Returns:
        Path to the pyproject.toml

    Raises:
        VersionNotFoundError: If version cannot be found
    """
    pyproject_path = _resolve(path)
    content = _read(pyproject_path)
    found = _find_version(content)
    if found is None:
        raise VersionNotFoundError(
            f"Could not find version to update in {pyproject_path}. "
            "Expected [project].version or [tool.poetry].version."
        )

    start, end, current = found
    if current == new_version:
        logger.info("%s already at version %s", pyproject_path, new_version)
        return pyproject_path

    pyproject_path.write_bytes((content[:start] + new_version + content[end:]).encode("utf-8"))
    logger.debug("Wrote version %s to %s", new_version, pyproject_path)
    return pyproject_path


def get_version_from_file(file_path: Path) -> str:
    """Read the version from a Python file such as ``__init__.py``.

    The first ``__version__``, ``VERSION`` or ``version`` assignment wins.

    Raises:
        VersionNotFoundError: If no pattern matches
        ProjectError: If the file doesn't exist
    """
    if not file_path.is_file():
        raise ProjectError(f"Version file not found: {file_path}")

    content = _read(file_path)
    for pat in _VERSION_FILE_PATTERNS:
        match = re.search(pat, content, re.MULTILINE)
        if match:
            return match.group(3)

    raise VersionNotFoundError(f"Could not find version pattern in {file_path}")


def update_version_file(file_path: Path, new_version: str) -> None:
    """Update the first ``__version__``-style assignment in a Python file.

    Raises:
        VersionNotFoundError: If no version assignment is found
        ProjectError: If the file doesn't exist
    """
    if not file_path.is_file():
        raise ProjectError(f"Version file not found: {file_path}")

    content = _read(file_path)
    for pat in _VERSION_FILE_PATTERNS:
        match = re.search(pat, content, re.MULTILINE)
        if match:
            updated = content[: match.start(3)] + new_version + content[match.end(3) :]
            file_path.write_bytes(updated.encode("utf-8"))
            return

    raise VersionNotFoundError(f"Could not find version pattern in {file_path}")

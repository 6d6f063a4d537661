"""Stamp version numbers into the Hermes sources before a build."""
from __future__ import annotations

from pathlib import Path
from typing import Callable
import re

from core.console import Console

from .fileops import FileOperations
from .options import NULL_FILE_VERSION

# The VERSION argument of the ``project()`` command, e.g. ``project(Hermes VERSION 0.12.0)``.
_CMAKE_VERSION_PATTERN = re.compile(r"(\bproject\s*\([^)]*?\bVERSION\s+)[0-9]+(?:\.[0-9]+)*", re.IGNORECASE)
_PACKAGE_VERSION_PATTERN = re.compile(r'"version":\s*"[^"]*",')


def versions_requested(semantic_version: str, file_version: str) -> bool:
    return bool(semantic_version.strip()) and file_version.strip() != NULL_FILE_VERSION


def resolve_engine_version(semantic_version: str, file_version: str) -> str:
    """Version stamped into CMake; canary builds (``0.0.0-...``) use the file version."""

    if semantic_version.startswith("0.0.0"):
        return file_version
    return semantic_version


def _rewrite(
    path: Path,
    pattern: re.Pattern[str],
    replace: Callable[[re.Match[str]], str],
    console: Console,
) -> bool:
    if not path.is_file():
        console.warn(f"Cannot set version: {path} does not exist")
        return False
    content = path.read_text(encoding="utf-8")
    updated = pattern.sub(replace, content, count=1)
    if console.dry_run:
        console.dry(f"update version in {path}")
        return updated != content
    # The file is written back even when nothing matched.
    path.write_text(updated, encoding="utf-8")
    return updated != content


def update_versions(
    sources_path: Path,
    semantic_version: str,
    file_version: str,
    *,
    console: Console,
) -> bool:
    """Rewrite ``CMakeLists.txt`` and ``npm/package.json``.

    Returns ``False`` without touching anything unless a semantic version is
    given and the file version is not ``0.0.0.0``.
    """

    if not versions_requested(semantic_version, file_version):
        return False

    engine_version = resolve_engine_version(semantic_version, file_version)
    _rewrite(
        sources_path / "CMakeLists.txt",
        _CMAKE_VERSION_PATTERN,
        lambda match: f"{match.group(1)}{engine_version}",
        console,
    )
    _rewrite(
        sources_path / "npm" / "package.json",
        _PACKAGE_VERSION_PATTERN,
        lambda _match: f'"version": "{semantic_version}",',
        console,
    )
    console.info(f"Semantic version set to {semantic_version}")
    console.info(f"Hermes version set to {engine_version}")
    return True


def remove_governance_files(sources_path: Path, file_version: str, *, files: FileOperations) -> bool:
    """Drop sources excluded from official builds; versioned builds only."""

    if file_version.strip() == NULL_FILE_VERSION:
        return False
    files.delete_dir(sources_path / "unsupported" / "juno")
    return True


__all__ = [
    "remove_governance_files",
    "resolve_engine_version",
    "update_versions",
    "versions_requested",
]

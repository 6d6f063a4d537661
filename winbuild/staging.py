"""Copy build outputs into the package staging tree."""
from __future__ import annotations

from pathlib import Path
from typing import Mapping
import os

from .cmake import BuildJob
from .fileops import FileOperations
from .layout import OutputLayout, StagingPaths

LIBRARY_FILES = ("hermes.dll", "hermes.lib", "hermes.pdb")
TOOL_FILES = ("hermes.exe", "hermesc.exe")


def default_placeholder(env: Mapping[str, str] | None = None) -> Path:
    """``%SystemRoot%\\system32\\kernel32.dll``, a binary present on every Windows host."""

    environment = env if env is not None else os.environ
    system_root = environment.get("SystemRoot")
    if not system_root:
        raise FileNotFoundError("SystemRoot is not set; configure [fake_build] binary instead")
    return Path(system_root) / "system32" / "kernel32.dll"


class ArtifactStager:
    def __init__(
        self,
        *,
        layout: OutputLayout,
        files: FileOperations,
        placeholder: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._layout = layout
        self._files = files
        self._placeholder = placeholder
        self._env = env

    def _ensure_paths(self, job: BuildJob) -> StagingPaths:
        paths = self._layout.staging_paths(job.app_platform, job.platform, job.configuration)
        self._files.ensure_dir(paths.dll_path)
        self._files.ensure_dir(paths.tools_path)
        return paths

    def stage_build_outputs(self, job: BuildJob) -> StagingPaths:
        paths = self._ensure_paths(job)

        dll_source = job.build_path / "API" / "hermes_shared"
        for name in LIBRARY_FILES:
            self._files.copy_file(name, dll_source, paths.dll_path)

        # UWP builds only produce the shared library.
        if not job.is_uwp:
            tools_source = job.build_path / "bin"
            for name in TOOL_FILES:
                self._files.copy_file(name, tools_source, paths.tools_path)
        return paths

    def placeholder(self) -> Path:
        if self._placeholder is not None:
            return self._placeholder
        return default_placeholder(self._env)

    def stage_placeholders(self, job: BuildJob) -> StagingPaths:
        """Fill the staging paths with copies of a placeholder binary."""

        paths = self._ensure_paths(job)
        source = self.placeholder()

        for name in LIBRARY_FILES:
            self._files.copy_as(source, paths.dll_path / name)
        if not job.is_uwp:
            for name in TOOL_FILES:
                self._files.copy_as(source, paths.tools_path / name)
        return paths


__all__ = ["ArtifactStager", "LIBRARY_FILES", "TOOL_FILES", "default_placeholder"]

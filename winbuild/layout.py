"""Output directory layout and triplet paths."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class StagingPaths:
    dll_path: Path
    tools_path: Path


@dataclass(frozen=True, slots=True)
class OutputLayout:
    """Fixed sub-directories of the output root.

    ``build/<app>-<platform>-<configuration>`` holds one CMake tree per job,
    ``tools`` the host compiler build, ``pkg-staging`` the package layout and
    ``pkg`` the produced packages.
    """

    output_path: Path

    @property
    def build_path(self) -> Path:
        return self.output_path / "build"

    @property
    def tools_path(self) -> Path:
        return self.output_path / "tools"

    @property
    def pkg_staging_path(self) -> Path:
        return self.output_path / "pkg-staging"

    @property
    def pkg_path(self) -> Path:
        return self.output_path / "pkg"

    @property
    def host_compiler(self) -> Path:
        return self.tools_path / "bin" / "hermesc.exe"

    @property
    def import_hermesc(self) -> Path:
        return self.tools_path / "ImportHermesc.cmake"

    def triplet_path(self, app_platform: str, platform: str, configuration: str) -> Path:
        return self.build_path / triplet(app_platform, platform, configuration)

    def staging_paths(self, app_platform: str, platform: str, configuration: str) -> StagingPaths:
        return StagingPaths(
            dll_path=self.pkg_staging_path / "lib" / "native" / app_platform / configuration / platform,
            tools_path=self.pkg_staging_path / "tools" / "native" / configuration / platform,
        )

    @property
    def staging_build_native(self) -> Path:
        return self.pkg_staging_path / "build" / "native"

    @property
    def staging_include(self) -> Path:
        return self.staging_build_native / "include"

    @property
    def staging_license(self) -> Path:
        return self.pkg_staging_path / "license"

    @property
    def staging_uap(self) -> Path:
        return self.pkg_staging_path / "lib" / "uap"


def triplet(app_platform: str, platform: str, configuration: str) -> str:
    return f"{app_platform}-{platform}-{configuration}"

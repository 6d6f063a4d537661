"""Assemble the staging tree and produce the NuGet packages."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List

from core.command_runner import CommandRunner
from core.console import Console

from .fileops import FileOperations
from .layout import OutputLayout
from .options import BuildConfiguration
from .settings import PackageSettings

NODE_API_HEADERS = ("js_native_api.h", "js_native_api_types.h", "js_runtime_api.h")
UAP_TAG_FILE = "_._"


@dataclass(frozen=True, slots=True)
class PackageVariant:
    fat_suffix: str
    exclude_bin_files: str


# The slim package drops debug symbols; the fat one keeps everything but text files.
PACKAGE_VARIANTS = (
    PackageVariant(fat_suffix="", exclude_bin_files="**/*.pdb"),
    PackageVariant(fat_suffix=".Fat", exclude_bin_files="*.txt"),
)


@dataclass(frozen=True, slots=True)
class SourceControlInfo:
    branch: str
    commit: str


class NuGetPackager:
    def __init__(
        self,
        *,
        config: BuildConfiguration,
        layout: OutputLayout,
        package: PackageSettings,
        runner: CommandRunner,
        query_runner: CommandRunner,
        console: Console,
        files: FileOperations,
    ) -> None:
        self._config = config
        self._layout = layout
        self._package = package
        self._runner = runner
        self._query_runner = query_runner
        self._console = console
        self._files = files

    @property
    def nuspec_name(self) -> str:
        return f"{self._package.package_id}.nuspec"

    @property
    def nuget_source_path(self) -> Path:
        return self._config.sources_path / ".ado" / "Nuget"

    def stage_package_files(self) -> None:
        sources = self._config.sources_path
        layout = self._layout
        api_path = sources / "API"
        shared_api_path = api_path / "hermes_shared"
        package_id = self._package.package_id

        jsi_target = layout.staging_include / "jsi"
        self._files.ensure_dir(jsi_target)
        self._files.copy_tree(api_path / "jsi" / "jsi", jsi_target)

        node_api_target = layout.staging_include / "node-api"
        for name in NODE_API_HEADERS:
            self._files.copy_file(name, shared_api_path / "node-api", node_api_target)
        self._files.copy_file("hermes_api.h", shared_api_path, layout.staging_include / "hermes")

        self._files.copy_file("LICENSE", sources, layout.staging_license)
        self._files.copy_file("NOTICE.txt", self.nuget_source_path, layout.staging_license)

        self._files.copy_file(f"{package_id}.props", self.nuget_source_path, layout.staging_build_native)
        self._files.copy_file(f"{package_id}.targets", self.nuget_source_path, layout.staging_build_native)
        self._files.copy_file(self.nuspec_name, self.nuget_source_path, layout.pkg_staging_path)

        # Marks the package as compatible with UAP projects.
        if not layout.staging_uap.exists():
            self._files.write_text(layout.staging_uap / UAP_TAG_FILE, "")

    def source_control_info(self) -> SourceControlInfo:
        cwd = self._config.sources_path
        branch = self._query_runner.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd, note="Read branch"
        ).stdout.strip()
        commit = self._query_runner.run(
            ["git", "rev-parse", "HEAD"], cwd=cwd, note="Read commit"
        ).stdout.strip()
        return SourceControlInfo(branch=branch, commit=commit)

    def package_properties(self, variant: PackageVariant, info: SourceControlInfo) -> str:
        properties = [
            f"nugetroot={self._layout.pkg_staging_path}",
            f"version={self._config.semantic_version}",
            f"repoUrl={self._package.repo_url}",
            f"repoBranch={info.branch}",
            f"repoCommit={info.commit}",
            f"fat_suffix={variant.fat_suffix}",
            f"exclude_bin_files={variant.exclude_bin_files}",
        ]
        return ";".join(properties)

    def pack_commands(self, info: SourceControlInfo) -> List[List[str]]:
        base = [
            "nuget",
            "pack",
            str(self._layout.pkg_staging_path / self.nuspec_name),
            "-OutputDirectory",
            str(self._layout.pkg_path),
            "-NoDefaultExcludes",
        ]
        return [[*base, "-Properties", self.package_properties(variant, info)] for variant in PACKAGE_VARIANTS]

    def pack(self) -> List[List[str]]:
        """Stage headers, licenses and MSBuild files, then pack the slim and fat packages."""

        self.stage_package_files()
        self._files.ensure_dir(self._layout.pkg_path)

        info = self.source_control_info()
        commands = self.pack_commands(info)
        for command in commands:
            self._console.info(f"Run command: {self._runner.format_command(command)}")
            self._runner.run(command, check=True, note="Pack NuGet package", stream=True)
        return commands


__all__ = [
    "NODE_API_HEADERS",
    "NuGetPackager",
    "PACKAGE_VARIANTS",
    "PackageVariant",
    "SourceControlInfo",
]

"""CMake/Ninja invocation for a single build job."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence

from core.command_runner import CommandResult, CommandRunner
from core.console import Console

from .fileops import FileOperations
from .layout import OutputLayout
from .options import BuildConfiguration
from .toolchain import ToolchainShell, toolchain_environment


@dataclass(frozen=True, slots=True)
class BuildJob:
    app_platform: str
    platform: str
    configuration: str
    build_path: Path
    target: str | None = None
    stage_artifacts: bool = True

    @property
    def is_uwp(self) -> bool:
        return self.app_platform == "uwp"

    @property
    def needs_host_compiler(self) -> bool:
        # hermesc must run on the host, so foreign targets import a host build of it.
        return self.is_uwp or self.platform.startswith("arm64")

    def describe(self) -> str:
        return (
            f"IsUWP: {self.is_uwp}, "
            f"Platform: {self.platform}, "
            f"Configuration: {self.configuration}, "
            f"Build path: {self.build_path}"
        )


@dataclass(slots=True)
class BuildStep:
    description: str
    command: Sequence[str]
    cwd: Path
    env: Dict[str, str] = field(default_factory=dict)


def cmake_build_type(configuration: str) -> str:
    return "Release" if configuration == "release" else "FastDebug"


class CMakeInvoker:
    def __init__(
        self,
        *,
        config: BuildConfiguration,
        layout: OutputLayout,
        shell: ToolchainShell,
        runner: CommandRunner,
        console: Console,
        files: FileOperations,
    ) -> None:
        self._config = config
        self._layout = layout
        self._shell = shell
        self._runner = runner
        self._console = console
        self._files = files

    def configure_arguments(self, job: BuildJob) -> List[str]:
        args: List[str] = ["cmake", "-G", "Ninja"]
        args.append(f"-DCMAKE_BUILD_TYPE={cmake_build_type(job.configuration)}")
        args.append("-DHERMESVM_PLATFORM_LOGGING=ON")
        if self._config.has_file_version:
            args.append(f"-DHERMES_FILE_VERSION={self._config.file_version}")
        args.append("-DHERMES_ENABLE_DEBUGGER=ON")
        args.append("-DHERMES_ENABLE_INTL=ON")
        args.append(f"-DHERMES_MSVC_USE_PLATFORM_UNICODE_WINGLOB={'OFF' if job.is_uwp else 'ON'}")

        if job.is_uwp:
            args.append("-DCMAKE_SYSTEM_NAME=WindowsStore")
            args.append(f"-DCMAKE_SYSTEM_VERSION={self._config.windows_sdk_version}")
            args.append(f"-DIMPORT_HERMESC={self._layout.import_hermesc}")
        elif job.platform in ("arm64", "arm64ec"):
            args.append("-DHERMES_MSVC_ARM64=ON")
            args.append(f"-DIMPORT_HERMESC={self._layout.import_hermesc}")

        args.append(str(self._config.sources_path))
        return args

    def configure_step(self, job: BuildJob) -> BuildStep:
        return self._step("Configure project", self.configure_arguments(job), job)

    def build_step(self, job: BuildJob) -> BuildStep:
        command = ["cmake", "--build", "."]
        if job.target:
            command.extend(["--target", job.target])
        return self._step("Build project", command, job)

    def test_step(self, job: BuildJob) -> BuildStep:
        return self._step("Test project", ["ctest", "--output-on-failure"], job)

    def _step(self, description: str, command: List[str], job: BuildJob) -> BuildStep:
        return BuildStep(
            description=description,
            command=self._shell.wrap(command, platform=job.platform, app_platform=job.app_platform),
            cwd=job.build_path,
            env=toolchain_environment(job.platform),
        )

    def run(self, step: BuildStep) -> CommandResult:
        self._files.ensure_dir(step.cwd)
        self._console.info(f"Run command: {self._runner.format_command(step.command)}")
        return self._runner.run(
            step.command,
            cwd=step.cwd,
            env=step.env,
            check=True,
            note=step.description,
            stream=True,
        )


__all__ = ["BuildJob", "BuildStep", "CMakeInvoker", "cmake_build_type"]

"""Build matrix planning and execution."""
from __future__ import annotations

from pathlib import Path
from typing import List, Set

from core.console import Console

from .cmake import BuildJob, CMakeInvoker
from .fileops import FileOperations
from .layout import OutputLayout
from .options import BuildConfiguration
from .staging import ArtifactStager

HOST_COMPILER_TARGET = "hermesc"
UWP_TARGET = "libshared"


class HostCompilerPrerequisite:
    """Host (win32/x64/release) build of hermesc, required before UWP and ARM64 builds.

    The node is satisfied when the compiler exists in the tools folder or was
    already built by this process.
    """

    def __init__(self, layout: OutputLayout) -> None:
        self._layout = layout
        self._built = False

    @property
    def job(self) -> BuildJob:
        return BuildJob(
            app_platform="win32",
            platform="x64",
            configuration="release",
            build_path=self._layout.tools_path,
            target=HOST_COMPILER_TARGET,
            stage_artifacts=False,
        )

    @property
    def compiler_path(self) -> Path:
        return self._layout.host_compiler

    def required_by(self, job: BuildJob) -> bool:
        return job.needs_host_compiler and job != self.job

    def satisfied(self) -> bool:
        return self._built or self.compiler_path.is_file()

    def mark_built(self) -> None:
        self._built = True


def plan_jobs(config: BuildConfiguration, layout: OutputLayout) -> List[BuildJob]:
    """One job per (platform, configuration) pair, platforms varying slowest."""

    jobs: List[BuildJob] = []
    for platform in config.platforms:
        for configuration in config.configurations:
            jobs.append(
                BuildJob(
                    app_platform=config.app_platform,
                    platform=platform,
                    configuration=configuration,
                    build_path=layout.triplet_path(config.app_platform, platform, configuration),
                    target=UWP_TARGET if config.is_uwp else None,
                )
            )
    return jobs


class BuildMatrixDriver:
    def __init__(
        self,
        *,
        config: BuildConfiguration,
        layout: OutputLayout,
        invoker: CMakeInvoker,
        stager: ArtifactStager,
        console: Console,
        files: FileOperations,
    ) -> None:
        self._config = config
        self._layout = layout
        self._invoker = invoker
        self._stager = stager
        self._console = console
        self._files = files
        self._host_compiler = HostCompilerPrerequisite(layout)
        # Paths handled in this run; in dry-run mode nothing appears on disk.
        self._configured: Set[Path] = set()
        self._built: Set[Path] = set()

    @property
    def host_compiler(self) -> HostCompilerPrerequisite:
        return self._host_compiler

    def jobs(self) -> List[BuildJob]:
        return plan_jobs(self._config, self._layout)

    def run(self) -> List[BuildJob]:
        jobs = self.jobs()
        for job in jobs:
            self.run_job(job)
        return jobs

    def run_job(self, job: BuildJob) -> None:
        self._console.info(f"Build for {job.describe()}")

        if self._config.fake_build:
            self._stager.stage_placeholders(job)
            return
        if self._config.clean_build:
            self.clean(job)
        if self._config.configure:
            self.configure(job)
        if self._config.build:
            self.build(job)
        if self._config.test:
            self.test(job)

    def clean(self, job: BuildJob) -> None:
        self._files.delete_dir(job.build_path)
        self._configured.discard(job.build_path)
        self._built.discard(job.build_path)

    def ensure_prerequisites(self, job: BuildJob) -> None:
        prerequisite = self._host_compiler
        if not prerequisite.required_by(job) or prerequisite.satisfied():
            return
        self._console.info(f"Building host compiler {prerequisite.compiler_path}")
        self.build(prerequisite.job)
        prerequisite.mark_built()

    def _is_configured(self, job: BuildJob) -> bool:
        return job.build_path in self._configured or job.build_path.exists()

    def configure(self, job: BuildJob) -> None:
        self.ensure_prerequisites(job)
        self._invoker.run(self._invoker.configure_step(job))
        self._configured.add(job.build_path)

    def build(self, job: BuildJob) -> None:
        if not self._is_configured(job):
            self.configure(job)
        self.ensure_prerequisites(job)
        self._invoker.run(self._invoker.build_step(job))
        self._built.add(job.build_path)
        if job.stage_artifacts:
            self._stager.stage_build_outputs(job)

    def test(self, job: BuildJob) -> None:
        if job.is_uwp:
            self._console.info("Skip testing for UWP")
            return
        if not (job.build_path in self._built or job.build_path.exists()):
            self.build(job)
        self._invoker.run(self._invoker.test_step(job))


__all__ = [
    "BuildMatrixDriver",
    "HOST_COMPILER_TARGET",
    "HostCompilerPrerequisite",
    "UWP_TARGET",
    "plan_jobs",
]

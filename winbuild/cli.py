"""Command line interface for building Hermes for Windows."""
from __future__ import annotations

from argparse import Namespace
from pathlib import Path
from typing import Iterable, Mapping
import os
import sys
import time

from core.command_runner import CommandError, CommandRunner, RecordingCommandRunner, SubprocessCommandRunner
from core.console import Console

from . import cleanup
from .build import BuildMatrixDriver
from .cmake import CMakeInvoker
from .fileops import FileOperations
from .layout import OutputLayout
from .options import ArgumentValidationError, BuildConfiguration, describe, parse_arguments, resolve_configuration
from .packager import NuGetPackager
from .settings import ProjectSettings, load_settings
from .staging import ArtifactStager
from .toolchain import ToolchainLocator, ToolchainNotFoundError, ToolchainShell
from .version import remove_governance_files, update_versions


def _make_runner(dry_run: bool) -> SubprocessCommandRunner | RecordingCommandRunner:
    return RecordingCommandRunner() if dry_run else SubprocessCommandRunner()


def _emit_dry_run_output(runner: RecordingCommandRunner) -> None:
    for line in runner.iter_formatted():
        print(line)


def _format_elapsed(seconds: float) -> str:
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def _load_settings(args: Namespace, cwd: Path) -> ProjectSettings:
    sources_hint = (cwd / args.sources_path).resolve() if args.sources_path else cwd
    config_path = (cwd / args.config).resolve() if args.config else None
    return load_settings(config_path, sources_path=sources_hint)


def run_build(
    config: BuildConfiguration,
    settings: ProjectSettings,
    *,
    console: Console,
    runner: CommandRunner,
    query_runner: CommandRunner,
    env: Mapping[str, str] | None = None,
) -> BuildMatrixDriver:
    """Run every requested stage for ``config`` and return the driver used."""

    files = FileOperations(console)
    layout = OutputLayout(config.output_path)

    files.ensure_dir(config.output_path)

    console.blank()
    console.info("winbuild is invoked with parameters:")
    for line in describe(config):
        console.info(f"  {line}")
    console.blank()

    remove_governance_files(config.sources_path, config.file_version, files=files)
    update_versions(config.sources_path, config.semantic_version, config.file_version, console=console)

    if config.clean_all:
        cleanup.clean_all(layout, files)
    if config.clean_tools:
        cleanup.clean_tools(layout, files)
    if config.clean_pkg:
        cleanup.clean_pkg(layout, files)

    locator = ToolchainLocator(query_runner, console, settings.toolchain, env=env)
    shell = ToolchainShell(locator, sdk_version=config.windows_sdk_version)
    invoker = CMakeInvoker(
        config=config,
        layout=layout,
        shell=shell,
        runner=runner,
        console=console,
        files=files,
    )
    stager = ArtifactStager(layout=layout, files=files, placeholder=settings.fake_binary, env=env)
    driver = BuildMatrixDriver(
        config=config,
        layout=layout,
        invoker=invoker,
        stager=stager,
        console=console,
        files=files,
    )
    driver.run()

    if config.pack:
        NuGetPackager(
            config=config,
            layout=layout,
            package=settings.package,
            runner=runner,
            query_runner=query_runner,
            console=console,
            files=files,
        ).pack()
    return driver


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_arguments(sys.argv[1:] if argv is None else argv)
    cwd = Path.cwd()

    try:
        settings = _load_settings(args, cwd)
        config = resolve_configuration(args, settings, cwd=cwd)
    except ArgumentValidationError as exc:
        for line in exc.describe():
            print(line, file=sys.stderr)
        return 1
    except (FileNotFoundError, TypeError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    console = Console(config.log_level, dry_run=config.dry_run)
    runner = _make_runner(config.dry_run)
    # Queries (vswhere, git) always run so dry-run output matches a real run.
    query_runner = SubprocessCommandRunner()

    start = time.monotonic()
    try:
        run_build(config, settings, console=console, runner=runner, query_runner=query_runner, env=os.environ)
    except CommandError as exc:
        console.error(str(exc))
        return exc.returncode if exc.returncode > 0 else 1
    except (ToolchainNotFoundError, FileNotFoundError) as exc:
        console.error(str(exc))
        return 1

    if isinstance(runner, RecordingCommandRunner):
        _emit_dry_run_output(runner)

    console.info(f"Build took {_format_elapsed(time.monotonic() - start)} to run")
    console.blank()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

"""MSVC toolchain discovery and command wrapping."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence
import json
import os

from core.command_runner import CommandRunner
from core.console import Console

from .settings import ToolchainSettings

SPECTRE_FLAG = "-vcvars_spectre_libs=spectre"

_HOST_TARGET_ARGS = {
    "x64": "x64",
    "x86": "x64_x86",
    "arm64": "x64_arm64",
    "arm64ec": "x64_arm64",
}


class ToolchainNotFoundError(RuntimeError):
    """Raised when vswhere or vcvarsall.bat cannot be located."""


class ToolchainLocator:
    """Find ``vcvarsall.bat`` of the installed Visual Studio.

    The lookup runs once; later calls return the cached path.
    """

    def __init__(
        self,
        runner: CommandRunner,
        console: Console,
        settings: ToolchainSettings | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._runner = runner
        self._console = console
        self._settings = settings or ToolchainSettings()
        self._env = dict(env) if env is not None else dict(os.environ)
        self._vcvarsall: Path | None = None

    def vswhere(self) -> Path:
        if self._settings.vswhere is not None:
            candidate = self._settings.vswhere
        else:
            program_files = self._env.get("ProgramFiles(x86)") or self._env.get("ProgramFiles")
            if not program_files:
                raise ToolchainNotFoundError("Could not find vswhere.exe: ProgramFiles is not set")
            candidate = Path(program_files) / "Microsoft Visual Studio" / "Installer" / "vswhere.exe"
        if not candidate.is_file():
            raise ToolchainNotFoundError(f"Could not find vswhere.exe at {candidate}")
        return candidate

    def _query_instances(self, vswhere: Path) -> List[Dict[str, Any]]:
        result = self._runner.run(
            [str(vswhere), "-format", "json", "-version", self._settings.vs_version],
            check=True,
            note="Query Visual Studio instances",
        )
        try:
            instances = json.loads(result.stdout or "[]")
        except json.JSONDecodeError as exc:
            raise ToolchainNotFoundError(f"vswhere returned invalid JSON: {exc}") from exc
        if not isinstance(instances, list):
            raise ToolchainNotFoundError("vswhere returned an unexpected document")
        return [item for item in instances if isinstance(item, dict)]

    def vcvarsall(self) -> Path:
        if self._vcvarsall is not None:
            return self._vcvarsall

        if self._settings.vcvarsall is not None:
            candidate = self._settings.vcvarsall
        else:
            instances = self._query_instances(self.vswhere())
            if not instances:
                raise ToolchainNotFoundError(
                    f"No Visual Studio {self._settings.vs_version} installation found"
                )
            if len(instances) > 1:
                self._console.warn("More than one VS install detected, picking the first one")
            installation_path = instances[0].get("installationPath")
            if not installation_path:
                raise ToolchainNotFoundError("vswhere did not report an installationPath")
            candidate = Path(str(installation_path)) / "VC" / "Auxiliary" / "Build" / "vcvarsall.bat"

        if not candidate.is_file():
            raise ToolchainNotFoundError(
                f"Could not find vcvarsall.bat at expected Visual Studio installation path: {candidate}"
            )
        self._console.debug(f"Using {candidate}")
        self._vcvarsall = candidate
        return candidate


def vcvarsall_arguments(platform: str, app_platform: str, sdk_version: str = "") -> List[str]:
    """Return the ``vcvarsall.bat`` arguments for a target."""

    args = [_HOST_TARGET_ARGS.get(platform, "x64")]
    if app_platform == "uwp":
        args.append("uwp")
    if sdk_version:
        args.append(sdk_version)
    args.append(SPECTRE_FLAG)
    return args


def toolchain_environment(platform: str) -> Dict[str, str]:
    """Environment overlay for one toolchain invocation."""

    if platform == "arm64ec":
        return {"CFLAGS": "-arm64EC", "CXXFLAGS": "-arm64EC"}
    return {}


class ToolchainShell:
    """Prefix commands with a ``vcvarsall.bat`` call so they run in the MSVC environment."""

    def __init__(self, locator: ToolchainLocator, *, sdk_version: str = "") -> None:
        self._locator = locator
        self._sdk_version = sdk_version

    def wrap(self, command: Sequence[str], *, platform: str, app_platform: str) -> List[str]:
        vcvarsall = self._locator.vcvarsall()
        return [
            "cmd.exe",
            "/d",
            "/c",
            "call",
            str(vcvarsall),
            *vcvarsall_arguments(platform, app_platform, self._sdk_version),
            "&&",
            *command,
        ]


__all__ = [
    "SPECTRE_FLAG",
    "ToolchainLocator",
    "ToolchainNotFoundError",
    "ToolchainShell",
    "toolchain_environment",
    "vcvarsall_arguments",
]

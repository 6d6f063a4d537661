"""Project settings read from the optional ``winbuild`` configuration file."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

from core.config_loader import load_config_file

DEFAULT_CONFIG_NAME = "winbuild.toml"
DEFAULT_PACKAGE_ID = "Microsoft.JavaScript.Hermes"
DEFAULT_REPO_URL = "https://github.com/microsoft/hermes-windows"
DEFAULT_VS_VERSION = "17"


def _check_keys(section: str, data: Mapping[str, Any], allowed: set[str]) -> None:
    unknown = {str(key) for key in data.keys() if str(key) not in allowed}
    if unknown:
        joined = ", ".join(sorted(unknown))
        raise ValueError(f"[{section}] contains unknown keys: {joined}")


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, Mapping):
        raise TypeError(f"[{name}] must be a table")
    return value


def _optional_path(value: Any) -> Path | None:
    if value is None:
        return None
    text = str(value).strip()
    return Path(text) if text else None


@dataclass(slots=True)
class PackageSettings:
    package_id: str = DEFAULT_PACKAGE_ID
    repo_url: str = DEFAULT_REPO_URL

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PackageSettings":
        _check_keys("package", data, {"id", "repo_url"})
        return cls(
            package_id=str(data.get("id", DEFAULT_PACKAGE_ID)),
            repo_url=str(data.get("repo_url", DEFAULT_REPO_URL)),
        )


@dataclass(slots=True)
class ToolchainSettings:
    vs_version: str = DEFAULT_VS_VERSION
    vswhere: Path | None = None
    vcvarsall: Path | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ToolchainSettings":
        _check_keys("toolchain", data, {"vs_version", "vswhere", "vcvarsall"})
        return cls(
            vs_version=str(data.get("vs_version", DEFAULT_VS_VERSION)),
            vswhere=_optional_path(data.get("vswhere")),
            vcvarsall=_optional_path(data.get("vcvarsall")),
        )


@dataclass(slots=True)
class ProjectSettings:
    """Settings layered under the command line options."""

    log_level: str | None = None
    defaults: Dict[str, Any] = field(default_factory=dict)
    package: PackageSettings = field(default_factory=PackageSettings)
    toolchain: ToolchainSettings = field(default_factory=ToolchainSettings)
    fake_binary: Path | None = None
    source: Path | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, source: Path | None = None) -> "ProjectSettings":
        _check_keys("root", data, {"global", "defaults", "package", "toolchain", "fake_build"})

        global_section = _section(data, "global")
        _check_keys("global", global_section, {"log_level"})
        log_level = global_section.get("log_level")

        defaults_section = _section(data, "defaults")
        defaults = {str(key).replace("-", "_"): value for key, value in defaults_section.items()}

        fake_section = _section(data, "fake_build")
        _check_keys("fake_build", fake_section, {"binary"})

        return cls(
            log_level=str(log_level).lower() if log_level else None,
            defaults=defaults,
            package=PackageSettings.from_mapping(_section(data, "package")),
            toolchain=ToolchainSettings.from_mapping(_section(data, "toolchain")),
            fake_binary=_optional_path(fake_section.get("binary")),
            source=source,
        )


def load_settings(config_path: Path | None, *, sources_path: Path) -> ProjectSettings:
    """Load settings from ``config_path`` or from ``winbuild.toml`` in the sources.

    An explicitly requested file must exist; the implicit one is optional.
    """

    if config_path is not None:
        if not config_path.is_file():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        return ProjectSettings.from_mapping(load_config_file(config_path), source=config_path)

    implicit = sources_path / DEFAULT_CONFIG_NAME
    if implicit.is_file():
        return ProjectSettings.from_mapping(load_config_file(implicit), source=implicit)
    return ProjectSettings()


__all__ = [
    "DEFAULT_CONFIG_NAME",
    "PackageSettings",
    "ProjectSettings",
    "ToolchainSettings",
    "load_settings",
]

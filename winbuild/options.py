"""Command line option parsing and resolution into a build configuration."""
from __future__ import annotations

from argparse import ArgumentParser, BooleanOptionalAction, Namespace
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, NoReturn, Sequence
import sys

from core.config_loader import normalize_string_list

from .settings import ProjectSettings

APP_PLATFORMS = ("win32", "uwp")
PLATFORMS = ("x64", "x86", "arm64", "arm64ec")
CONFIGURATIONS = ("debug", "release")
LOG_LEVELS = ("none", "error", "info", "debug")

NULL_FILE_VERSION = "0.0.0.0"

# Built-in defaults, applied when neither the command line nor the
# configuration file provides a value.
DEFAULTS: Dict[str, Any] = {
    "configure": False,
    "build": True,
    "test": False,
    "pack": False,
    "clean_all": False,
    "clean_build": False,
    "clean_tools": False,
    "clean_pkg": False,
    "fake_build": False,
    "dry_run": False,
    "app_platform": "win32",
    "platform": ["x64"],
    "configuration": ["release"],
    "semantic_version": "0.0.0",
    "file_version": NULL_FILE_VERSION,
    "windows_sdk_version": "",
    "log_level": "info",
}

VALID_SETS: Dict[str, Sequence[str]] = {
    "app_platform": APP_PLATFORMS,
    "platform": PLATFORMS,
    "configuration": CONFIGURATIONS,
    "log_level": LOG_LEVELS,
}

_BOOLEAN_OPTIONS = (
    ("configure", "Configure CMake before the build"),
    ("build", "Build binaries"),
    ("test", "Run tests"),
    ("pack", "Create NuGet packages"),
    ("clean_all", "Delete the whole output folder"),
    ("clean_build", "Delete the build folder for the targeted configurations"),
    ("clean_tools", "Delete the tools folder used for UWP and ARM64 builds"),
    ("clean_pkg", "Delete NuGet pkg and pkg-staging folders"),
    ("fake_build", "Replace binaries with fake files for script debugging"),
)

_STRING_OPTIONS = ("app_platform", "semantic_version", "file_version", "windows_sdk_version", "log_level")
_LIST_OPTIONS = ("platform", "configuration")
_PATH_OPTIONS = ("output_path", "sources_path")


class ArgumentValidationError(ValueError):
    """Raised when an option value is outside of its valid set."""

    def __init__(self, key: str, value: str, valid: Iterable[str]):
        self.key = key
        self.value = value
        self.valid = tuple(valid)
        super().__init__(f"Invalid value for {key}: {value}")

    def describe(self) -> List[str]:
        return [str(self), f"Valid values are: {', '.join(self.valid)}"]


@dataclass(frozen=True, slots=True)
class BuildConfiguration:
    app_platform: str
    platforms: tuple[str, ...]
    configurations: tuple[str, ...]
    output_path: Path
    sources_path: Path
    semantic_version: str = "0.0.0"
    file_version: str = NULL_FILE_VERSION
    windows_sdk_version: str = ""
    configure: bool = False
    build: bool = True
    test: bool = False
    pack: bool = False
    clean_all: bool = False
    clean_build: bool = False
    clean_tools: bool = False
    clean_pkg: bool = False
    fake_build: bool = False
    dry_run: bool = False
    log_level: str = "info"

    @property
    def is_uwp(self) -> bool:
        return self.app_platform == "uwp"

    @property
    def has_file_version(self) -> bool:
        return bool(self.file_version.strip()) and self.file_version.strip() != NULL_FILE_VERSION


def _option_name(key: str) -> str:
    return key.replace("_", "-")


class _ArgumentParser(ArgumentParser):
    """Exit with status 1 on usage errors, like validation failures."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> ArgumentParser:
    parser = _ArgumentParser(
        prog="winbuild",
        description="Build Hermes for Windows and create NuGet packages",
    )
    for key, text in _BOOLEAN_OPTIONS:
        parser.add_argument(
            f"--{_option_name(key)}",
            dest=key,
            action=BooleanOptionalAction,
            default=None,
            help=f"{text} (default: {DEFAULTS[key]})",
        )
    parser.add_argument(
        "--uwp",
        action="store_true",
        default=None,
        help="Build for UWP; same as --app-platform uwp",
    )
    parser.add_argument(
        "--app-platform",
        dest="app_platform",
        metavar="NAME",
        help=f"Application platform (default: {DEFAULTS['app_platform']}) [valid values: {', '.join(APP_PLATFORMS)}]",
    )
    parser.add_argument(
        "--platform",
        action="append",
        metavar="NAME",
        help=f"Target platform(s), repeatable or comma separated (default: x64) [valid values: {', '.join(PLATFORMS)}]",
    )
    parser.add_argument(
        "--configuration",
        action="append",
        metavar="NAME",
        help=f"Build configuration(s), repeatable or comma separated (default: release) [valid values: {', '.join(CONFIGURATIONS)}]",
    )
    parser.add_argument("--output-path", dest="output_path", metavar="PATH", help="Path to the output directory (default: <sources>/out)")
    parser.add_argument("--sources-path", dest="sources_path", metavar="PATH", help="Path to the Hermes sources (default: current directory)")
    parser.add_argument("--semantic-version", dest="semantic_version", metavar="VERSION", help="NuGet package semantic version (default: 0.0.0)")
    parser.add_argument("--file-version", dest="file_version", metavar="VERSION", help="Version set in binary files (default: 0.0.0.0)")
    parser.add_argument(
        "--windows-sdk-version",
        dest="windows_sdk_version",
        metavar="VERSION",
        help='Windows SDK version, e.g. "10.0.19041.0" (default: toolchain default)',
    )
    parser.add_argument("--config", dest="config", metavar="PATH", help="Configuration file (default: <sources>/winbuild.toml when present)")
    parser.add_argument("-n", "--dry-run", dest="dry_run", action="store_true", default=None, help="Print commands and file operations without executing them")
    parser.add_argument("--log-level", dest="log_level", metavar="LEVEL", help=f"Console verbosity [valid values: {', '.join(LOG_LEVELS)}]")
    return parser


def parse_arguments(argv: Iterable[str]) -> Namespace:
    return build_parser().parse_args(list(argv))


def _pick(key: str, cli_value: Any, defaults: Mapping[str, Any]) -> Any:
    if cli_value is not None:
        return cli_value
    # A null entry in the configuration file counts as unset.
    if defaults.get(key) is not None:
        return defaults[key]
    return DEFAULTS.get(key)


def _unique(values: Iterable[str]) -> List[str]:
    # Repeated values would produce colliding build jobs.
    result: List[str] = []
    for value in values:
        if value not in result:
            result.append(value)
    return result


def validate_option(key: str, values: Sequence[str]) -> None:
    valid = VALID_SETS[key]
    for item in values:
        if item not in valid:
            raise ArgumentValidationError(_option_name(key), item, valid)


def resolve_configuration(args: Namespace, settings: ProjectSettings, *, cwd: Path) -> BuildConfiguration:
    """Merge command line values over configuration file defaults and validate them."""

    defaults = dict(settings.defaults)
    if settings.log_level and "log_level" not in defaults:
        defaults["log_level"] = settings.log_level
    unknown = set(defaults) - set(DEFAULTS) - set(_PATH_OPTIONS)
    if unknown:
        raise ValueError(f"[defaults] contains unknown keys: {', '.join(sorted(unknown))}")

    values: Dict[str, Any] = {}
    for key, _ in _BOOLEAN_OPTIONS:
        values[key] = bool(_pick(key, getattr(args, key, None), defaults))
    values["dry_run"] = bool(_pick("dry_run", getattr(args, "dry_run", None), defaults))

    for key in _STRING_OPTIONS:
        value = _pick(key, getattr(args, key, None), defaults)
        values[key] = str(value).strip().lower()

    uwp_flag = getattr(args, "uwp", None)
    if uwp_flag:
        if getattr(args, "app_platform", None) is not None and values["app_platform"] != "uwp":
            raise ArgumentValidationError("app-platform", values["app_platform"], ("uwp",))
        values["app_platform"] = "uwp"

    for key in _LIST_OPTIONS:
        raw = _pick(key, getattr(args, key, None), defaults)
        items = [item.lower() for item in normalize_string_list(raw, field_name=key)]
        if not items:
            shown = ",".join(raw) if isinstance(raw, (list, tuple)) else str(raw)
            raise ArgumentValidationError(_option_name(key), shown, VALID_SETS[key])
        values[key] = _unique(items)

    for key in ("app_platform", "log_level"):
        validate_option(key, [values[key]])
    for key in _LIST_OPTIONS:
        validate_option(key, values[key])

    sources_raw = _pick("sources_path", getattr(args, "sources_path", None), defaults)
    sources_path = (cwd / Path(sources_raw)).resolve() if sources_raw else cwd.resolve()
    output_raw = _pick("output_path", getattr(args, "output_path", None), defaults)
    output_path = (cwd / Path(output_raw)).resolve() if output_raw else sources_path / "out"

    return BuildConfiguration(
        app_platform=values["app_platform"],
        platforms=tuple(values["platform"]),
        configurations=tuple(values["configuration"]),
        output_path=output_path,
        sources_path=sources_path,
        semantic_version=values["semantic_version"],
        file_version=values["file_version"],
        windows_sdk_version=values["windows_sdk_version"],
        configure=values["configure"],
        build=values["build"],
        test=values["test"],
        pack=values["pack"],
        clean_all=values["clean_all"],
        clean_build=values["clean_build"],
        clean_tools=values["clean_tools"],
        clean_pkg=values["clean_pkg"],
        fake_build=values["fake_build"],
        dry_run=values["dry_run"],
        log_level=values["log_level"],
    )


def describe(config: BuildConfiguration) -> List[str]:
    """Return ``name: value`` lines for every resolved option, aligned on the colon."""

    rows: List[tuple[str, str]] = []
    for item in fields(config):
        value = getattr(config, item.name)
        if isinstance(value, tuple):
            text = ", ".join(value)
        else:
            text = str(value)
        rows.append((_option_name(item.name), text))
    width = max(len(name) for name, _ in rows)
    return [f"{name.rjust(width)}: {text}" for name, text in rows]


__all__ = [
    "APP_PLATFORMS",
    "CONFIGURATIONS",
    "LOG_LEVELS",
    "NULL_FILE_VERSION",
    "PLATFORMS",
    "ArgumentValidationError",
    "BuildConfiguration",
    "build_parser",
    "describe",
    "parse_arguments",
    "resolve_configuration",
    "validate_option",
]

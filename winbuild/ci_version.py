"""Compute the package and file versions for an Azure Pipelines run.

The result is published as pipeline variables through ``##vso`` logging
commands so later jobs can pass them to ``winbuild --semantic-version`` and
``--file-version``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping
import os

TEST_BRANCH_MARKER = "1es-pt-migration"
MAIN_BRANCH = "refs/heads/main"
RELEASE_BRANCH_PREFIX = "refs/heads/rnw/0."


class VersionError(ValueError):
    """Raised when the pipeline variables cannot produce a version."""


@dataclass(frozen=True, slots=True)
class PipelineVersion:
    semantic_version: str
    file_version: str
    is_test: bool = False


def _require(env: Mapping[str, str], name: str) -> str:
    value = env.get(name)
    if value is None:
        raise VersionError(f"Environment variable '{name}' is not set")
    return value


def canary_version(env: Mapping[str, str], *, is_test: bool) -> PipelineVersion:
    build_number = _require(env, "Build_BuildNumber")
    parts = build_number.split(".")
    if (
        len(parts) != 4
        or parts[0] != "0"
        or parts[1] != "0"
        or len(parts[2]) != 4
        or not 4 <= len(parts[3]) <= 5
    ):
        raise VersionError(f"Unexpected pre-release build number format encountered: {build_number}")

    short_hash = _require(env, "Build_SourceVersion")[:8]
    return PipelineVersion(
        semantic_version=f"0.0.0-{parts[2]}.{parts[3]}-{short_hash}",
        file_version=build_number,
        is_test=is_test,
    )


def release_version(env: Mapping[str, str]) -> PipelineVersion:
    build_number = _require(env, "Build_BuildNumber")
    if len(build_number.split(".")) != 3:
        raise VersionError(f"Unexpected release build number format encountered: {build_number}")
    return PipelineVersion(semantic_version=build_number, file_version=f"{build_number}.0")


def compute_version(env: Mapping[str, str], *, must_publish: bool) -> PipelineVersion:
    source_branch = _require(env, "Build_SourceBranch")
    if TEST_BRANCH_MARKER in source_branch:
        return canary_version(env, is_test=True)
    if not must_publish or source_branch == MAIN_BRANCH:
        return canary_version(env, is_test=False)
    if source_branch.startswith(RELEASE_BRANCH_PREFIX):
        return release_version(env)
    raise VersionError(f"Build script does not support source branch '{source_branch}'.")


def logging_commands(version: PipelineVersion, *, must_publish: bool) -> List[str]:
    lines: List[str] = []
    if not version.file_version.startswith(version.semantic_version):
        test_prefix = "Test " if version.is_test else ""
        publish_prefix = "CI " if must_publish else "PR "
        lines.append(
            "##vso[build.updateBuildNumber]"
            f"{test_prefix}{publish_prefix}{version.file_version} -- {version.semantic_version}"
        )
    lines.append(f"##vso[task.setVariable variable=semanticVersion;isOutput=true]{version.semantic_version}")
    lines.append(f"##vso[task.setVariable variable=fileVersion;isOutput=true]{version.file_version}")
    return lines


def main(env: Mapping[str, str] | None = None) -> int:
    environment = env if env is not None else os.environ
    must_publish = environment.get("MustPublish") == "True"
    print(f"MustPublish: {must_publish}")

    try:
        version = compute_version(environment, must_publish=must_publish)
    except VersionError as exc:
        print(f"##[error]{exc}")
        return 1

    print(f"Semantic Version: {version.semantic_version}")
    print(f"Windows File Version: {version.file_version}")
    for line in logging_commands(version, must_publish=must_publish):
        print(line)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

"""Utilities for executing external tools with optional dry-run support."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Sequence
import os
import subprocess


@dataclass
class CommandResult:
    """Represents the outcome of an executed command."""

    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str
    streamed: bool = False


class CommandError(RuntimeError):
    """Raised when a command exits with a non-zero status."""

    def __init__(self, result: CommandResult):
        message = f"Command failed with exit code {result.returncode}: {subprocess.list2cmdline(list(result.command))}"
        if result.streamed:
            message = f"{message}\nstdout/stderr already streamed above."
        else:
            message = (
                f"{message}\n"
                f"stdout: {result.stdout}\n"
                f"stderr: {result.stderr}"
            )
        super().__init__(message)
        self.result = result

    @property
    def returncode(self) -> int:
        return self.result.returncode


class CommandRunner:
    """Abstract command runner interface."""

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        raise NotImplementedError

    def format_command(self, command: Sequence[str]) -> str:
        # Commands target cmd.exe, so render them the way Windows will see them.
        return subprocess.list2cmdline(list(command))


class SubprocessCommandRunner(CommandRunner):
    """Command runner that executes commands via :mod:`subprocess`.

    ``env`` is an overlay on top of the current process environment; the
    process environment itself is never modified.
    """

    @staticmethod
    def _merge_environment(env: Mapping[str, str] | None) -> Dict[str, str] | None:
        if not env:
            return None
        merged = os.environ.copy()
        merged.update(env)
        return merged

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        # Streaming commands inherit stdout/stderr of the parent process.
        process = subprocess.run(
            list(command),
            cwd=str(cwd) if cwd else None,
            env=self._merge_environment(env),
            capture_output=not stream,
            text=True,
            check=False,
        )
        result = CommandResult(
            command=command,
            returncode=process.returncode,
            stdout=process.stdout or "",
            stderr=process.stderr or "",
            streamed=stream,
        )
        if check and result.returncode != 0:
            raise CommandError(result)
        return result


@dataclass(slots=True)
class RecordedCommand:
    command: List[str]
    cwd: str | None
    env: Dict[str, str]
    note: str | None
    stream: bool


@dataclass(slots=True)
class _ScriptedResponse:
    prefix: tuple[str, ...]
    stdout: str
    returncode: int = 0
    hits: int = field(default=0)


class RecordingCommandRunner(CommandRunner):
    """Command runner that records commands instead of executing them.

    Commands whose leading arguments match a registered response return the
    scripted stdout, which lets callers that parse tool output (``vswhere``,
    ``git rev-parse``) run without the tools installed.
    """

    def __init__(self) -> None:
        self.commands: List[RecordedCommand] = []
        self._responses: List[_ScriptedResponse] = []

    def respond(self, prefix: Sequence[str], stdout: str, *, returncode: int = 0) -> None:
        self._responses.append(
            _ScriptedResponse(prefix=tuple(str(part) for part in prefix), stdout=stdout, returncode=returncode)
        )

    def _lookup(self, command: Sequence[str]) -> _ScriptedResponse | None:
        parts = tuple(str(part) for part in command)
        for response in self._responses:
            if parts[: len(response.prefix)] == response.prefix:
                return response
        return None

    @staticmethod
    def _record_entry(
        *,
        command: Sequence[str],
        cwd: Path | None,
        env: Mapping[str, str] | None,
        note: str | None,
        stream: bool,
    ) -> RecordedCommand:
        return RecordedCommand(
            command=[str(part) for part in command],
            cwd=str(cwd) if cwd else None,
            env=dict(env) if env else {},
            note=note,
            stream=stream,
        )

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        self.commands.append(
            self._record_entry(command=command, cwd=cwd, env=env, note=note, stream=stream)
        )
        response = self._lookup(command)
        if response is None:
            return CommandResult(command=command, returncode=0, stdout="", stderr="", streamed=stream)
        response.hits += 1
        result = CommandResult(command=command, returncode=response.returncode, stdout=response.stdout, stderr="")
        if check and result.returncode != 0:
            raise CommandError(result)
        return result

    def iter_commands(self) -> Iterable[RecordedCommand]:
        return iter(self.commands)

    def iter_formatted(self) -> Iterable[str]:
        for record in self.commands:
            parts: List[str] = ["[dry-run]"]
            if record.note:
                parts.append(record.note)
            if record.cwd:
                parts.append(f"(cwd={record.cwd})")
            if record.env:
                overlay = ", ".join(f"{key}={value}" for key, value in sorted(record.env.items()))
                parts.append(f"(env: {overlay})")
            parts.append(self.format_command(record.command))
            yield " ".join(parts)


__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "RecordedCommand",
    "RecordingCommandRunner",
    "SubprocessCommandRunner",
]

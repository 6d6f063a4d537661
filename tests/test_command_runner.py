from __future__ import annotations

from pathlib import Path
import os
import unittest
from unittest import mock

from core.command_runner import (
    CommandError,
    CommandResult,
    RecordingCommandRunner,
    SubprocessCommandRunner,
)


class RecordingCommandRunnerTests(unittest.TestCase):
    def test_records_and_formats_commands(self) -> None:
        runner = RecordingCommandRunner()
        result = runner.run(
            ["cmake", "--build", "."],
            cwd=Path("out/build"),
            env={"CFLAGS": "-arm64EC"},
            note="Build project",
            stream=True,
        )
        self.assertEqual(result.returncode, 0)
        self.assertTrue(result.streamed)
        self.assertEqual(
            list(runner.iter_formatted()),
            [f"[dry-run] Build project (cwd={Path('out/build')}) (env: CFLAGS=-arm64EC) cmake --build ."],
        )

    def test_quotes_arguments_with_spaces(self) -> None:
        runner = RecordingCommandRunner()
        runner.run(["call", "C:/Program Files/vcvarsall.bat"])
        self.assertEqual(list(runner.iter_formatted()), ['[dry-run] call "C:/Program Files/vcvarsall.bat"'])

    def test_scripted_responses(self) -> None:
        runner = RecordingCommandRunner()
        runner.respond(["git", "rev-parse"], "main\n")
        self.assertEqual(runner.run(["git", "rev-parse", "HEAD"]).stdout, "main\n")
        self.assertEqual(runner.run(["git", "status"]).stdout, "")
        self.assertEqual(len(list(runner.iter_commands())), 2)

    def test_scripted_failure_raises_when_checked(self) -> None:
        runner = RecordingCommandRunner()
        runner.respond(["ninja"], "boom", returncode=3)
        with self.assertRaises(CommandError) as ctx:
            runner.run(["ninja"])
        self.assertEqual(ctx.exception.returncode, 3)
        self.assertEqual(runner.run(["ninja"], check=False).returncode, 3)


class SubprocessCommandRunnerTests(unittest.TestCase):
    def test_environment_is_an_overlay(self) -> None:
        runner = SubprocessCommandRunner()
        completed = mock.Mock(returncode=0, stdout="ok", stderr="")
        with mock.patch.dict("os.environ", {"PATH": "/usr/bin"}, clear=True), mock.patch(
            "core.command_runner.subprocess.run", return_value=completed
        ) as run:
            result = runner.run(["cmake", "--version"], env={"CFLAGS": "-arm64EC"})
            self.assertEqual(result.stdout, "ok")
            kwargs = run.call_args.kwargs
            self.assertEqual(kwargs["env"], {"PATH": "/usr/bin", "CFLAGS": "-arm64EC"})
            self.assertTrue(kwargs["capture_output"])
            self.assertNotIn("CFLAGS", os.environ)

    def test_no_overlay_inherits_environment(self) -> None:
        runner = SubprocessCommandRunner()
        completed = mock.Mock(returncode=0, stdout="", stderr="")
        with mock.patch("core.command_runner.subprocess.run", return_value=completed) as run:
            runner.run(["ninja"], cwd=Path("build"), stream=True)
        kwargs = run.call_args.kwargs
        self.assertIsNone(kwargs["env"])
        self.assertEqual(kwargs["cwd"], "build")
        self.assertFalse(kwargs["capture_output"])

    def test_failure_raises_command_error(self) -> None:
        runner = SubprocessCommandRunner()
        completed = mock.Mock(returncode=2, stdout="", stderr="bad")
        with mock.patch("core.command_runner.subprocess.run", return_value=completed):
            with self.assertRaises(CommandError) as ctx:
                runner.run(["ninja"])
        self.assertEqual(ctx.exception.returncode, 2)
        self.assertIn("stderr: bad", str(ctx.exception))

    def test_streamed_failure_message(self) -> None:
        error = CommandError(CommandResult(["ninja"], 1, "", "", streamed=True))
        self.assertIn("already streamed", str(error))


if __name__ == "__main__":
    unittest.main()

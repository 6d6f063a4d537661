from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from core.console import Console
from winbuild.cmake import BuildJob
from winbuild.fileops import FileOperations
from winbuild.layout import OutputLayout
from winbuild.staging import ArtifactStager, default_placeholder


class ArtifactStagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.layout = OutputLayout(self.root / "out")
        self.files = FileOperations(Console("none"))
        self.stager = ArtifactStager(layout=self.layout, files=self.files, env={})

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _job(self, app_platform: str = "win32", platform: str = "x64") -> BuildJob:
        return BuildJob(
            app_platform=app_platform,
            platform=platform,
            configuration="release",
            build_path=self.layout.triplet_path(app_platform, platform, "release"),
        )

    def _write_outputs(self, job: BuildJob, *, tools: bool = True) -> None:
        shared = job.build_path / "API" / "hermes_shared"
        shared.mkdir(parents=True)
        for name in ("hermes.dll", "hermes.lib", "hermes.pdb"):
            (shared / name).write_text(f"built {name}")
        if tools:
            bin_dir = job.build_path / "bin"
            bin_dir.mkdir(parents=True)
            for name in ("hermes.exe", "hermesc.exe"):
                (bin_dir / name).write_text(f"built {name}")

    def test_stages_library_and_tools(self) -> None:
        job = self._job(platform="arm64")
        self._write_outputs(job)
        paths = self.stager.stage_build_outputs(job)
        self.assertEqual(paths.dll_path, self.layout.pkg_staging_path / "lib" / "native" / "win32" / "release" / "arm64")
        self.assertEqual(paths.tools_path, self.layout.pkg_staging_path / "tools" / "native" / "release" / "arm64")
        self.assertEqual((paths.dll_path / "hermes.dll").read_text(), "built hermes.dll")
        self.assertEqual((paths.tools_path / "hermesc.exe").read_text(), "built hermesc.exe")

    def test_uwp_stages_library_only(self) -> None:
        job = self._job(app_platform="uwp")
        self._write_outputs(job, tools=False)
        paths = self.stager.stage_build_outputs(job)
        self.assertTrue((paths.dll_path / "hermes.pdb").is_file())
        self.assertTrue(paths.tools_path.is_dir())
        self.assertEqual(list(paths.tools_path.iterdir()), [])

    def test_missing_output_is_fatal(self) -> None:
        job = self._job()
        (job.build_path / "API" / "hermes_shared").mkdir(parents=True)
        with self.assertRaisesRegex(FileNotFoundError, "hermes.dll"):
            self.stager.stage_build_outputs(job)

    def test_default_placeholder_uses_system_root(self) -> None:
        self.assertEqual(
            default_placeholder({"SystemRoot": "C:/Windows"}),
            Path("C:/Windows") / "system32" / "kernel32.dll",
        )
        with self.assertRaises(FileNotFoundError):
            default_placeholder({})
        with self.assertRaises(FileNotFoundError):
            self.stager.placeholder()

    def test_configured_placeholder_wins(self) -> None:
        placeholder = self.root / "stub.dll"
        placeholder.write_bytes(b"stub")
        stager = ArtifactStager(
            layout=self.layout, files=self.files, placeholder=placeholder, env={"SystemRoot": "C:/Windows"}
        )
        self.assertEqual(stager.placeholder(), placeholder)
        paths = stager.stage_placeholders(self._job())
        self.assertEqual((paths.tools_path / "hermes.exe").read_bytes(), b"stub")


if __name__ == "__main__":
    unittest.main()

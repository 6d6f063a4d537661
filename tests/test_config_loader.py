from __future__ import annotations

from pathlib import Path
import tempfile
import textwrap
import unittest

from core.config_loader import load_config_file, normalize_string_list
from winbuild.settings import DEFAULT_PACKAGE_ID, ProjectSettings, load_settings


class ConfigLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_supports_toml_yaml_and_json(self) -> None:
        (self.root / "a.toml").write_text('[global]\nlog_level = "debug"\n')
        (self.root / "b.yaml").write_text("global:\n  log_level: debug\n")
        (self.root / "c.json").write_text('{"global": {"log_level": "debug"}}')
        for name in ("a.toml", "b.yaml", "c.json"):
            self.assertEqual(load_config_file(self.root / name), {"global": {"log_level": "debug"}})

    def test_empty_yaml_is_an_empty_mapping(self) -> None:
        (self.root / "empty.yml").write_text("")
        self.assertEqual(load_config_file(self.root / "empty.yml"), {})

    def test_rejects_non_mapping_root(self) -> None:
        (self.root / "list.yaml").write_text("- x64\n- arm64\n")
        with self.assertRaises(TypeError):
            load_config_file(self.root / "list.yaml")

    def test_rejects_unknown_extension(self) -> None:
        (self.root / "config.ini").write_text("")
        with self.assertRaisesRegex(ValueError, "Unsupported configuration file extension"):
            load_config_file(self.root / "config.ini")

    def test_normalize_string_list(self) -> None:
        self.assertEqual(normalize_string_list(None), [])
        self.assertEqual(normalize_string_list(" x64, arm64 ,"), ["x64", "arm64"])
        self.assertEqual(normalize_string_list(["x64,x86", "arm64"]), ["x64", "x86", "arm64"])
        with self.assertRaisesRegex(TypeError, "platform entries must be strings"):
            normalize_string_list(["x64", 3], field_name="platform")
        with self.assertRaises(TypeError):
            normalize_string_list(42)


class ProjectSettingsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_full_toml_settings(self) -> None:
        config = self.root / "winbuild.toml"
        config.write_text(
            textwrap.dedent(
                """
                [global]
                log_level = "DEBUG"

                [defaults]
                platform = ["x64", "arm64"]
                output-path = "D:/out"

                [package]
                id = "Contoso.Hermes"
                repo_url = "https://example.com/hermes"

                [toolchain]
                vs_version = "16"
                vcvarsall = "C:/VS/vcvarsall.bat"

                [fake_build]
                binary = "C:/stub.dll"
                """
            )
        )
        settings = load_settings(None, sources_path=self.root)
        self.assertEqual(settings.source, config)
        self.assertEqual(settings.log_level, "debug")
        self.assertEqual(settings.defaults, {"platform": ["x64", "arm64"], "output_path": "D:/out"})
        self.assertEqual(settings.package.package_id, "Contoso.Hermes")
        self.assertEqual(settings.package.repo_url, "https://example.com/hermes")
        self.assertEqual(settings.toolchain.vs_version, "16")
        self.assertEqual(settings.toolchain.vcvarsall, Path("C:/VS/vcvarsall.bat"))
        self.assertIsNone(settings.toolchain.vswhere)
        self.assertEqual(settings.fake_binary, Path("C:/stub.dll"))

    def test_yaml_settings(self) -> None:
        config = self.root / "ci.yaml"
        config.write_text("package:\n  id: Contoso.Hermes\n")
        settings = load_settings(config, sources_path=self.root)
        self.assertEqual(settings.package.package_id, "Contoso.Hermes")

    def test_missing_implicit_file_uses_defaults(self) -> None:
        settings = load_settings(None, sources_path=self.root)
        self.assertEqual(settings, ProjectSettings())
        self.assertEqual(settings.package.package_id, DEFAULT_PACKAGE_ID)

    def test_missing_explicit_file_is_an_error(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_settings(self.root / "missing.toml", sources_path=self.root)

    def test_unknown_keys_are_rejected(self) -> None:
        with self.assertRaisesRegex(ValueError, r"\[root\] contains unknown keys: build"):
            ProjectSettings.from_mapping({"build": {}})
        with self.assertRaisesRegex(ValueError, r"\[package\] contains unknown keys: name"):
            ProjectSettings.from_mapping({"package": {"name": "x"}})
        with self.assertRaisesRegex(ValueError, r"\[toolchain\]"):
            ProjectSettings.from_mapping({"toolchain": {"msvc": "x"}})

    def test_sections_must_be_tables(self) -> None:
        with self.assertRaises(TypeError):
            ProjectSettings.from_mapping({"defaults": ["x64"]})


if __name__ == "__main__":
    unittest.main()

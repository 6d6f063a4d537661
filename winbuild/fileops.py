"""Filesystem operations that honour dry-run mode."""
from __future__ import annotations

from pathlib import Path
import shutil

from core.console import Console


class FileOperations:
    """Create, copy and delete files, or only report it when ``console.dry_run`` is set."""

    def __init__(self, console: Console) -> None:
        self._console = console

    @property
    def dry_run(self) -> bool:
        return self._console.dry_run

    def ensure_dir(self, path: Path) -> None:
        if path.is_dir():
            return
        if self.dry_run:
            self._console.dry(f"mkdir {path}")
            return
        path.mkdir(parents=True, exist_ok=True)

    def delete_dir(self, path: Path) -> None:
        if not path.exists():
            return
        if self.dry_run:
            self._console.dry(f"rmdir {path}")
            return
        self._console.info(f"Deleting {path}")
        shutil.rmtree(path)

    def copy_file(self, name: str, source_dir: Path, target_dir: Path) -> Path:
        """Copy ``source_dir/name`` to ``target_dir/name``; a missing source is fatal."""

        return self.copy_as(source_dir / name, target_dir / name)

    def copy_as(self, source: Path, target: Path) -> Path:
        if self.dry_run:
            self._console.dry(f"copy {source} -> {target}")
            return target
        self.ensure_dir(target.parent)
        if not source.is_file():
            raise FileNotFoundError(f"Expected file is missing: {source}")
        shutil.copyfile(source, target)
        self._console.debug(f"Copied {source} -> {target}")
        return target

    def copy_tree(self, source: Path, target: Path) -> None:
        if self.dry_run:
            self._console.dry(f"copy tree {source} -> {target}")
            return
        if not source.is_dir():
            raise FileNotFoundError(f"Expected directory is missing: {source}")
        shutil.copytree(source, target, dirs_exist_ok=True)
        self._console.debug(f"Copied tree {source} -> {target}")

    def write_text(self, path: Path, content: str) -> None:
        if self.dry_run:
            self._console.dry(f"write {path}")
            return
        self.ensure_dir(path.parent)
        path.write_text(content, encoding="utf-8")

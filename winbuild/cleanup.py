"""Removal of output folders."""
from __future__ import annotations

from .fileops import FileOperations
from .layout import OutputLayout


def clean_all(layout: OutputLayout, files: FileOperations) -> None:
    files.delete_dir(layout.output_path)


def clean_tools(layout: OutputLayout, files: FileOperations) -> None:
    files.delete_dir(layout.tools_path)


def clean_pkg(layout: OutputLayout, files: FileOperations) -> None:
    files.delete_dir(layout.pkg_staging_path)
    files.delete_dir(layout.pkg_path)

"""Utility helpers for working with files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, List, NamedTuple

MARKDOWN_SUFFIX = ".md"
EXCLUDED_NAMES = frozenset({"README.md"})


class DirEntry(NamedTuple):
    name: str
    is_file: bool
    is_dir: bool


ListDir = Callable[[Path], List[DirEntry]]
ReadText = Callable[[Path], str]


def default_list_dir(path: Path) -> List[DirEntry]:
    """List the immediate entries of a directory without following symlinks."""
    with os.scandir(path) as entries:
        return [
            DirEntry(
                entry.name,
                entry.is_file(follow_symlinks=False),
                entry.is_dir(follow_symlinks=False),
            )
            for entry in entries
        ]


def read_text(path: Path) -> str:
    return Path(path).read_text(encoding="utf-8")


def is_knowledge_file(name: str) -> bool:
    return name.endswith(MARKDOWN_SUFFIX) and name not in EXCLUDED_NAMES


def find_markdown_files(root: Path, list_dir: ListDir = default_list_dir) -> List[Path]:
    """Recursively collect knowledge markdown files under root, sorted by path."""
    found: List[Path] = []

    def walk(current: Path) -> None:
        for entry in list_dir(current):
            child = current / entry.name
            if entry.is_dir:
                walk(child)
            elif entry.is_file and is_knowledge_file(entry.name):
                found.append(child)

    walk(Path(root))
    return sorted(found, key=lambda path: path.as_posix())

"""Utility helpers for working with files."""

from __future__ import annotations

from pathlib import Path
from typing import Collection, Iterator

DOC_EXTENSIONS = (".md", ".mdx")
EXCLUDED_DIRS = ("node_modules", ".git", "dist", "build")


def iter_doc_paths(
    root: Path,
    *,
    include_ext: Collection[str] = DOC_EXTENSIONS,
    exclude_dirs: Collection[str] = EXCLUDED_DIRS,
) -> Iterator[Path]:
    """Yield documentation files under ``root`` in lexicographic path order."""
    extensions = {ext.lower() for ext in include_ext}
    excluded = set(exclude_dirs)
    for path in sorted(root.rglob("*")):
        relative = path.relative_to(root)
        if any(part in excluded for part in relative.parts[:-1]):
            continue
        if path.is_file() and path.suffix.lower() in extensions:
            yield path


def relative_source(path: Path, root: Path) -> str:
    """Source label for a document: its path relative to the corpus root."""
    return path.relative_to(root).as_posix()

"""
merger.py

Responsibility: Deterministically merge a template subtree into a destination directory.

Rules:
- Walk source files in sorted order to ensure deterministic output.
- Copy files exactly as they exist in the bundle (bytes, mode and timestamps).
- Overwrite files that already exist at the same relative path.
- Never delete anything that exists only in the destination.
- Symlinks are recreated as symlinks rather than followed.

This module intentionally does NOT know about git, the generator, or CLI parsing.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from speckit_starter.errors import MergeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeResult:
    source: Path
    destination: Path
    created_files: int
    overwritten_files: int

    @property
    def total_files(self) -> int:
        return self.created_files + self.overwritten_files


def _iter_source_entries(source_dir: Path) -> tuple[list[Path], list[Path]]:
    """
    Return (directories, files) under source_dir in deterministic lexicographic
    order of their relative paths. Symlinks, including links to directories, are
    listed as files.
    """
    dirs: list[Path] = []
    files: list[Path] = []
    for root, dirnames, filenames in os.walk(source_dir):
        root_path = Path(root)
        for name in list(dirnames):
            path = root_path / name
            if path.is_symlink():
                files.append(path)
                dirnames.remove(name)
            else:
                dirs.append(path)
        for name in filenames:
            files.append(root_path / name)

    def key(p: Path) -> str:
        return str(p.relative_to(source_dir)).replace(os.sep, "/")

    dirs.sort(key=key)
    files.sort(key=key)
    return dirs, files


def _copy_entry(src_path: Path, dst_path: Path) -> None:
    if dst_path.is_dir() and not dst_path.is_symlink():
        raise MergeError(f"Cannot overwrite directory with non-directory: {dst_path}")
    if dst_path.is_symlink() or (src_path.is_symlink() and dst_path.exists()):
        dst_path.unlink()
    if src_path.is_symlink():
        os.symlink(os.readlink(src_path), dst_path)
    else:
        shutil.copy2(src_path, dst_path)


def merge_tree(source_dir: str | Path, destination_dir: str | Path) -> MergeResult:
    """
    Copy the contents of source_dir into destination_dir, overwriting on conflict.

    - Creates destination_dir and any intermediate directories as needed.
    - Leaves destination-only files untouched.
    - Not transactional: an error part-way leaves the files copied so far in place.
    """
    src_dir = Path(source_dir)
    dst_dir = Path(destination_dir)

    if not src_dir.is_dir():
        raise MergeError(f"Merge source is not a directory: {src_dir}")

    created = 0
    overwritten = 0

    try:
        dst_dir.mkdir(parents=True, exist_ok=True)
        dirs, files = _iter_source_entries(src_dir)

        # Empty directories in the bundle are part of the template layout too.
        for src_path in dirs:
            (dst_dir / src_path.relative_to(src_dir)).mkdir(parents=True, exist_ok=True)

        for src_path in files:
            rel = src_path.relative_to(src_dir)
            dst_path = dst_dir / rel
            dst_path.parent.mkdir(parents=True, exist_ok=True)
            existed = dst_path.exists() or dst_path.is_symlink()
            _copy_entry(src_path, dst_path)
            if existed:
                overwritten += 1
                logger.debug("Overwrote %s", dst_path)
            else:
                created += 1
                logger.debug("Created %s", dst_path)
    except OSError as e:
        raise MergeError(f"Failed merging {src_dir} into {dst_dir}: {e}") from e

    return MergeResult(source=src_dir, destination=dst_dir, created_files=created, overwritten_files=overwritten)

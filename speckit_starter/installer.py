"""
installer.py

Responsibility: The install operation.

High-level flow:
1) Ensure the generator launcher is installed (package manager fallback)
2) Run the generator against the working directory
3) Shallow-clone the template bundle into a fresh temporary directory
4) Merge the configured subtrees of the bundle into the working directory
5) Remove the temporary directory

The temporary directory and the working directory lock are scoped resources:
both are released on every exit path, success or failure. Steps are not
transactional; whatever an earlier step wrote to the working directory stays.
"""

from __future__ import annotations

import contextlib
import hashlib
import logging
import os
import tempfile
from collections.abc import Iterator
from dataclasses import dataclass, replace
from pathlib import Path

from speckit_starter.config import InstallConfig
from speckit_starter.errors import InstallerError, LockError, MergeError
from speckit_starter.merger import MergeResult, merge_tree
from speckit_starter.tools import Toolchain, default_toolchain

logger = logging.getLogger(__name__)

TEMP_PREFIX = "speckit-starter-"


@dataclass(frozen=True)
class InstallResult:
    workdir: Path
    merged: tuple[MergeResult, ...]
    skipped: tuple[str, ...]


def lock_path_for(workdir: Path, lock_root: str | Path | None = None) -> Path:
    """Lock file for workdir, kept outside the working tree."""
    digest = hashlib.sha256(str(workdir).encode("utf-8")).hexdigest()[:16]
    return Path(lock_root or tempfile.gettempdir()) / f"{TEMP_PREFIX}{digest}.lock"


@contextlib.contextmanager
def workdir_lock(workdir: Path, lock_root: str | Path | None = None) -> Iterator[Path]:
    """
    Hold an advisory lock for workdir for the duration of the block.

    Concurrent installs against the same directory are refused instead of
    interleaving their copies. The lock file lives in the temp directory, never
    inside workdir.
    """
    lock_path = lock_path_for(workdir, lock_root)
    try:
        fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    except FileExistsError as e:
        raise LockError(
            f"Another install appears to be running in {workdir} (remove {lock_path} if it is stale)"
        ) from e
    except OSError as e:
        raise InstallerError(f"Cannot create lock file {lock_path}: {e}") from e
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(f"{os.getpid()} {workdir}\n")
        yield lock_path
    finally:
        try:
            lock_path.unlink()
        except FileNotFoundError:
            logger.debug("Lock file already gone: %s", lock_path)


def _check_workdir(workdir: Path) -> None:
    if not workdir.is_dir():
        raise InstallerError(f"Working directory does not exist or is not a directory: {workdir}")
    if not os.access(workdir, os.W_OK):
        raise InstallerError(f"Working directory is not writable: {workdir}")


def merge_bundle(bundle_dir: Path, config: InstallConfig) -> InstallResult:
    """
    Merge every configured subtree of an already-fetched bundle into config.workdir.

    All destination directories are created up front, optional ones included. A
    missing required subtree fails the run; a missing optional one is skipped.
    """
    workdir = config.workdir
    for subtree in config.subtrees:
        try:
            (workdir / subtree.name).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MergeError(f"Cannot create {workdir / subtree.name}: {e}") from e

    merged: list[MergeResult] = []
    skipped: list[str] = []
    for subtree in config.subtrees:
        source = bundle_dir / subtree.name
        if not source.is_dir():
            if subtree.required:
                raise MergeError(f"Template bundle has no {subtree.name} directory: {config.template_repo}")
            logger.info("Template bundle has no %s directory, skipping", subtree.name)
            skipped.append(subtree.name)
            continue
        result = merge_tree(source, workdir / subtree.name)
        logger.info(
            "Merged %s: %d new, %d overwritten",
            subtree.name,
            result.created_files,
            result.overwritten_files,
        )
        merged.append(result)

    return InstallResult(workdir=workdir, merged=tuple(merged), skipped=tuple(skipped))


def install(
    config: InstallConfig,
    tools: Toolchain | None = None,
    *,
    temp_root: str | Path | None = None,
) -> InstallResult:
    """
    Run the full install against config.workdir.

    Raises an `InstallerError` subclass on the first failing step; its `exit_code`
    is the status the process should exit with.
    """
    workdir = config.workdir.resolve()
    config = replace(config, workdir=workdir)
    _check_workdir(workdir)
    tools = tools or default_toolchain(config)

    with workdir_lock(workdir, temp_root):
        logger.info("Checking for %s...", config.tool_binary)
        tools.bootstrapper.ensure_tool_installed()

        logger.info("Initializing spec-kit (ai=%s, script=%s)...", config.ai_assistant, config.script_flavor)
        tools.generator.run_generator(config)

        try:
            scratch = tempfile.TemporaryDirectory(prefix=TEMP_PREFIX, dir=temp_root)
        except OSError as e:
            raise InstallerError(f"Cannot create temporary directory: {e}") from e

        with scratch as tmp:
            bundle_dir = Path(tmp)
            logger.info("Cloning %s to %s...", config.template_repo, bundle_dir)
            tools.cloner.shallow_clone(config.template_repo, bundle_dir)

            logger.info("Merging %s...", ", ".join(st.name for st in config.subtrees))
            result = merge_bundle(bundle_dir, config)
            logger.info("Cleaning up...")

    return result

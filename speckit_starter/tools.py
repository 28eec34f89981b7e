"""
tools.py

Responsibility: Isolate every external process the installer launches.

This module must be the only place that:
- Probes PATH for the generator launcher
- Invokes the package manager, the generator CLI and git
- Turns non-zero exit statuses into `StepError`

Each collaborator is a narrow interface so the installer can be exercised with fakes.
Output of the child processes is passed straight through to the terminal; nothing
here interprets it.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from speckit_starter.config import InstallConfig
from speckit_starter.errors import StepError

logger = logging.getLogger(__name__)

# Shell convention for "command not found".
EXIT_COMMAND_NOT_FOUND = 127


def _run(step: str, cmd: list[str], *, cwd: Path | None = None) -> None:
    """
    Run a subprocess command, raising a StepError carrying its exit status on failure.
    """
    logger.debug("Running: %s", " ".join(cmd))
    try:
        subprocess.run(cmd, cwd=str(cwd) if cwd is not None else None, check=True)
    except FileNotFoundError as e:
        raise StepError(step, cmd, EXIT_COMMAND_NOT_FOUND, f"{cmd[0]}: command not found") from e
    except subprocess.CalledProcessError as e:
        raise StepError(step, cmd, e.returncode) from e


class ToolBootstrapper(Protocol):
    def ensure_tool_installed(self) -> None: ...


class GeneratorRunner(Protocol):
    def run_generator(self, config: InstallConfig) -> None: ...


class RepoCloner(Protocol):
    def shallow_clone(self, url: str, dest: Path) -> None: ...


@dataclass(frozen=True)
class Toolchain:
    """The three external collaborators used by one install run."""

    bootstrapper: ToolBootstrapper
    generator: GeneratorRunner
    cloner: RepoCloner


class PackageManagerBootstrapper:
    def __init__(self, binary: str, package: str, install_cmd: tuple[str, ...]) -> None:
        self.binary = binary
        self.package = package
        self.install_cmd = install_cmd

    def ensure_tool_installed(self) -> None:
        if shutil.which(self.binary):
            logger.debug("%s found on PATH", self.binary)
            return
        logger.info("%s not found, installing %s via %s...", self.binary, self.package, self.install_cmd[0])
        _run("Dependency install", [*self.install_cmd, self.package])


class LauncherGeneratorRunner:
    """Runs the generator through a launcher such as `uvx --from <source> ...`."""

    def __init__(self, launcher: str) -> None:
        self.launcher = launcher

    def run_generator(self, config: InstallConfig) -> None:
        cmd = [self.launcher, "--from", config.generator_source, *config.generator_args()]
        _run("Generator", cmd, cwd=config.workdir)


class GitCloner:
    def shallow_clone(self, url: str, dest: Path) -> None:
        _run("Clone", ["git", "clone", "--depth", "1", url, str(dest)])


def default_toolchain(config: InstallConfig) -> Toolchain:
    return Toolchain(
        bootstrapper=PackageManagerBootstrapper(config.tool_binary, config.tool_package, config.package_manager),
        generator=LauncherGeneratorRunner(config.tool_binary),
        cloner=GitCloner(),
    )

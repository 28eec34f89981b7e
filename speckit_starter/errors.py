"""
errors.py

Responsibility: Exceptions shared by the installer modules.

Every installer failure carries the process exit code the CLI should return, so the
status of a failing external command reaches the caller unchanged.
"""

from __future__ import annotations


class InstallerError(RuntimeError):
    exit_code: int = 1

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class StepError(InstallerError):
    """An external command failed; `exit_code` is its return status."""

    def __init__(self, step: str, cmd: list[str], exit_code: int, output: str = "") -> None:
        message = f"{step} failed (exit {exit_code}): {' '.join(cmd)}"
        if output:
            message = f"{message}\n\n{output}"
        super().__init__(message, exit_code=exit_code)
        self.step = step
        self.cmd = list(cmd)


class MergeError(InstallerError):
    pass


class LockError(InstallerError):
    # EX_TEMPFAIL
    exit_code = 75


class ConfigError(ValueError):
    pass

"""
config.py

Responsibility: Hold every constant the installer needs in one typed value object.

The defaults reproduce the stock Speckit starter for Apple platforms, so the CLI
works with no arguments at all. An optional YAML file can override individual
fields (useful for forks of the template repository and for tests).

The installer and CLI should treat `InstallConfig` as the single source of truth.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from speckit_starter.errors import ConfigError

DEFAULT_GENERATOR_SOURCE = "git+https://github.com/github/spec-kit.git"
DEFAULT_TEMPLATE_REPO = "git@github.com:theplant/speckit-starter-apple.git"


@dataclass(frozen=True)
class Subtree:
    """A directory of the template bundle that is merged into the project."""

    name: str
    required: bool = True


def _default_subtrees() -> tuple[Subtree, ...]:
    return (Subtree(".specify", required=True), Subtree(".windsurf", required=False))


@dataclass(frozen=True)
class InstallConfig:
    workdir: Path = field(default_factory=Path.cwd)

    tool_binary: str = "uvx"
    tool_package: str = "uv"
    package_manager: tuple[str, ...] = ("brew", "install")

    generator_source: str = DEFAULT_GENERATOR_SOURCE
    generator_command: tuple[str, ...] = ("specify", "init")
    ai_assistant: str = "windsurf"
    script_flavor: str = "sh"
    force: bool = True

    template_repo: str = DEFAULT_TEMPLATE_REPO
    subtrees: tuple[Subtree, ...] = field(default_factory=_default_subtrees)

    def generator_args(self) -> list[str]:
        """Arguments passed to the generator after the launcher's `--from` option."""
        args = [*self.generator_command, f"--ai={self.ai_assistant}", f"--script={self.script_flavor}"]
        if self.force:
            args.append("--force")
        args.append(".")
        return args


_STR_FIELDS = {"tool_binary", "tool_package", "generator_source", "ai_assistant", "script_flavor", "template_repo"}
_SEQ_FIELDS = {"package_manager", "generator_command"}
_BOOL_FIELDS = {"force"}


def _parse_subtrees(raw: Any) -> tuple[Subtree, ...]:
    if not isinstance(raw, list) or not raw:
        raise ConfigError("`subtrees` must be a non-empty list.")
    out: list[Subtree] = []
    for item in raw:
        if isinstance(item, str):
            out.append(Subtree(item.strip()))
        elif isinstance(item, dict):
            name = str(item.get("name") or "").strip()
            if not name:
                raise ConfigError("Each `subtrees` entry needs a `name`.")
            required = item.get("required", True)
            if not isinstance(required, bool):
                raise ConfigError(f"`required` of subtree {name!r} must be a boolean.")
            out.append(Subtree(name, required=required))
        else:
            raise ConfigError(f"Invalid `subtrees` entry: {item!r}")
    for st in out:
        parts = Path(st.name).parts
        # "." or "./" would overlay the whole bundle, cloned .git included.
        if not parts or Path(st.name).is_absolute() or ".." in parts:
            raise ConfigError(f"Subtree name must be a relative path inside the bundle: {st.name!r}")
        if ".git" in parts:
            raise ConfigError(f"Subtree name must not point into git metadata: {st.name!r}")
    return tuple(out)


def config_from_mapping(data: dict[str, Any], *, workdir: str | Path | None = None) -> InstallConfig:
    """
    Build an `InstallConfig` from a mapping of overrides.

    Keys not present keep their defaults. `workdir` is never read from the mapping;
    it comes from the caller.
    """
    known = {f.name for f in fields(InstallConfig)} - {"workdir"}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    overrides: dict[str, Any] = {}
    for key, value in data.items():
        if key in _STR_FIELDS:
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"`{key}` must be a non-empty string.")
            overrides[key] = value.strip()
        elif key in _SEQ_FIELDS:
            if not isinstance(value, list) or not value or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"`{key}` must be a non-empty list of strings.")
            overrides[key] = tuple(value)
        elif key in _BOOL_FIELDS:
            if not isinstance(value, bool):
                raise ConfigError(f"`{key}` must be a boolean.")
            overrides[key] = value
        elif key == "subtrees":
            overrides[key] = _parse_subtrees(value)

    config = InstallConfig()
    if workdir is not None:
        overrides["workdir"] = Path(workdir)
    return replace(config, **overrides)


def load_config(config_path: str | Path | None = None, *, workdir: str | Path | None = None) -> InstallConfig:
    """
    Load an `InstallConfig`, applying YAML overrides from `config_path` when given.

    The YAML file must contain a mapping at the top level; an empty file means
    "all defaults".
    """
    if config_path is None:
        return config_from_mapping({}, workdir=workdir)

    path = Path(config_path)
    if not path.is_file():
        raise ConfigError(f"Config file does not exist: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file is not valid YAML: {path}") from e
    if not isinstance(data, dict):
        raise ConfigError("Config file must be a mapping/object at the top level.")
    return config_from_mapping(data, workdir=workdir)

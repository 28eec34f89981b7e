"""Shared fakes for the external collaborators of the installer."""

from __future__ import annotations

from pathlib import Path

import pytest

from speckit_starter.config import InstallConfig
from speckit_starter.errors import StepError
from speckit_starter.tools import Toolchain


def write_files(root: Path, files: dict[str, str]) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def read_tree(root: Path) -> dict[str, str]:
    return {
        str(p.relative_to(root)).replace("\\", "/"): p.read_text(encoding="utf-8")
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


class FakeBootstrapper:
    def __init__(self, fail_code: int | None = None) -> None:
        self.fail_code = fail_code
        self.calls = 0

    def ensure_tool_installed(self) -> None:
        self.calls += 1
        if self.fail_code is not None:
            raise StepError("Dependency install", ["brew", "install", "uv"], self.fail_code)


class FakeGenerator:
    def __init__(self, fail_code: int | None = None, files: dict[str, str] | None = None) -> None:
        self.fail_code = fail_code
        self.files = files or {}
        self.configs: list[InstallConfig] = []

    def run_generator(self, config: InstallConfig) -> None:
        self.configs.append(config)
        if self.fail_code is not None:
            raise StepError("Generator", ["uvx", "specify", "init"], self.fail_code)
        write_files(config.workdir, self.files)


class FakeCloner:
    """Materializes an in-memory bundle into the clone destination."""

    def __init__(self, bundle: dict[str, str] | None = None, fail_code: int | None = None) -> None:
        self.bundle = bundle or {}
        self.fail_code = fail_code
        self.calls: list[tuple[str, Path]] = []

    def shallow_clone(self, url: str, dest: Path) -> None:
        self.calls.append((url, dest))
        write_files(dest, self.bundle)
        if self.fail_code is not None:
            raise StepError("Clone", ["git", "clone", "--depth", "1", url, str(dest)], self.fail_code)


DEFAULT_BUNDLE = {
    ".specify/memory/constitution.md": "# Constitution\n",
    ".specify/templates/plan.md": "plan\n",
    ".windsurf/workflows/test.md": "workflow\n",
    "README.md": "not merged\n",
}


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    path = tmp_path / "project"
    path.mkdir()
    return path.resolve()


@pytest.fixture
def temp_root(tmp_path: Path) -> Path:
    path = tmp_path / "tmp"
    path.mkdir()
    return path


@pytest.fixture
def config(workdir: Path) -> InstallConfig:
    return InstallConfig(workdir=workdir)


def make_toolchain(
    bundle: dict[str, str] | None = None,
    *,
    bootstrap_fail: int | None = None,
    generator_fail: int | None = None,
    clone_fail: int | None = None,
) -> Toolchain:
    return Toolchain(
        bootstrapper=FakeBootstrapper(bootstrap_fail),
        generator=FakeGenerator(generator_fail),
        cloner=FakeCloner(DEFAULT_BUNDLE if bundle is None else bundle, clone_fail),
    )

"""
speckit_starter package

This package implements the Speckit starter installer as a CLI-first utility.

Key responsibilities are split across modules:
- `config.py`: the install configuration value object and its optional YAML overrides
- `tools.py`: narrow wrappers around the external collaborators (package manager, generator, git)
- `merger.py`: deterministic copy-with-overwrite of a template subtree into a project
- `installer.py`: the install operation (bootstrap -> generate -> clone -> merge -> cleanup)
- `cli.py`: CLI entrypoint, logging setup and exit code propagation
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"

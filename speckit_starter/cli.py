"""
cli.py

Responsibility: CLI entrypoint for the Speckit starter installer.

High-level flow (single command, no arguments required):
1) Build the install configuration (defaults, optional YAML overrides)
2) Run the install
3) Print the next steps, or return the failing step's exit status

This module should orchestrate behavior but keep concerns isolated:
- Configuration: `config.py`
- External processes: `tools.py`
- Merging: `merger.py`
- The install operation itself: `installer.py`
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from jinja2 import Environment, StrictUndefined

from speckit_starter import __version__
from speckit_starter.config import InstallConfig, load_config
from speckit_starter.errors import ConfigError, InstallerError
from speckit_starter.installer import InstallResult, install

logger = logging.getLogger(__name__)

# argparse exits with 2 on usage errors; invalid config is reported the same way.
EXIT_USAGE = 2

NEXT_STEPS_TEMPLATE = """\
Installation complete!

Next steps:
  1. Review the constitution: cat {{ primary }}/memory/constitution.md
{%- if workflows %}
  2. Check the workflows: ls -la {{ workflows }}/workflows/
  3. Start building your iOS/macOS app with Clean Architecture!
{%- else %}
  2. Start building your iOS/macOS app with Clean Architecture!
{%- endif %}
"""


def render_next_steps(config: InstallConfig, result: InstallResult) -> str:
    primary = next((st.name for st in config.subtrees if st.required), config.subtrees[0].name)
    workflows = next((st.name for st in config.subtrees if not st.required and st.name not in result.skipped), None)

    env = Environment(autoescape=False, undefined=StrictUndefined, keep_trailing_newline=True)
    return env.from_string(NEXT_STEPS_TEMPLATE).render(primary=primary, workflows=workflows)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        format="%(levelname)s %(message)s",
        level=logging.DEBUG if verbose else logging.INFO,
        stream=sys.stderr,
    )


def install_cmd(args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config, workdir=Path(args.workdir) if args.workdir else Path.cwd())
    except ConfigError as e:
        logger.error("%s", e)
        return EXIT_USAGE

    try:
        result = install(config)
    except InstallerError as e:
        logger.error("%s", e)
        return e.exit_code

    print(render_next_steps(config, result), end="")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="speckit-starter",
        description="Install spec-kit and merge the Speckit starter templates into the current directory",
    )
    p.add_argument("--workdir", default=None, help="Directory to install into (default: current directory)")
    p.add_argument("--config", default=None, help="YAML file overriding the built-in install settings")
    p.add_argument("-v", "--verbose", action="store_true", help="Log every copied file")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.set_defaults(func=install_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(bool(args.verbose))
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())

"""CLI entry point — Click command group."""

from __future__ import annotations

import logging
import os

import click

from deskprep import __version__

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(verbosity: int) -> None:
    """WARNING by default, INFO with -v, DEBUG with -vv.

    ``ASTRBOT_PREPARE_LOG_LEVEL`` wins when set.
    """
    level_name = os.environ.get("ASTRBOT_PREPARE_LOG_LEVEL", "").strip().upper()
    if level_name:
        level = getattr(logging, level_name, logging.WARNING)
    else:
        level = {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    logging.basicConfig(level=level, format=LOG_FORMAT)


@click.group()
@click.version_option(__version__, prog_name="deskprep")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v, -vv).")
def cli(verbose: int) -> None:
    """deskprep — prepare AstrBot desktop build resources.

    Resolves the upstream AstrBot snapshot, keeps package.json,
    tauri.conf.json and Cargo.toml on one version, and provisions the
    bundled CPython runtime.
    """
    configure_logging(verbose)


# Register all sub-commands on import
from deskprep.cli import commands as _commands  # noqa: F401, E402

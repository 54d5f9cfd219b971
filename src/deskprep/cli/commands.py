"""CLI commands — prepare, status, target."""

from __future__ import annotations

from pathlib import Path

import click

from deskprep.cli import cli
from deskprep.cli.ui import spinner
from deskprep.core.errors import PrepareError
from deskprep.core.models import SyncStatus

_PREFIX = "[prepare-resources]"


# ── prepare ─────────────────────────────────────────────────────────


@cli.command()
@click.argument("mode", default="all")
@click.option(
    "--project-root", "root", default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Desktop project root (holds package.json and src-tauri/).",
)
def prepare(mode: str, root: str) -> None:
    """Prepare build resources.

    MODE is one of:

    \b
      version   sync descriptor versions only
      webui     sync, then stage the dashboard into resources/webui
      backend   sync, then stage sources + CPython into resources/backend
      all       webui and backend (default)
    """
    from deskprep.core.env import PrepareConfig, load_project_env
    from deskprep.services import prepare as prepare_service

    root_path = Path(root)
    load_project_env(root_path)
    config = PrepareConfig.from_env()

    try:
        with spinner() as status:
            report = prepare_service.prepare(root_path, mode, config, on_progress=status)
    except PrepareError as exc:
        raise click.ClickException(str(exc)) from exc

    if report.drift:
        click.echo(
            f"{_PREFIX} Version override drift detected: {report.drift} ({report.source_dir})",
            err=True,
        )

    for entry in report.sync.files:
        rel = entry.path.relative_to(root_path) if entry.path.is_relative_to(root_path) else entry.path
        click.echo(f"  {'↻' if entry.status is SyncStatus.UPDATED else '✔'} {rel} ({entry.status.value})")

    if report.version_source == "override":
        click.echo(
            f"{_PREFIX} Synced desktop version to override {report.version} (ASTRBOT_DESKTOP_VERSION)"
        )
    else:
        click.echo(f"{_PREFIX} Synced desktop version to AstrBot {report.version}")

    if report.webui_dir:
        click.echo(f"  → {report.webui_dir}")
    if report.backend_dir:
        click.echo(f"  → {report.backend_dir}")


# ── status ──────────────────────────────────────────────────────────


@cli.command()
@click.option(
    "--project-root", "root", default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Desktop project root.",
)
def status(root: str) -> None:
    """Show the version held by each descriptor file.

    Exits non-zero when the descriptors disagree or one cannot be read.
    """
    from deskprep.repo.descriptors import read_descriptor_versions

    versions = read_descriptor_versions(Path(root))
    for rel, version in versions.items():
        click.echo(f"  {rel}: {version if version is not None else '<unreadable>'}")

    distinct = set(versions.values())
    if None in distinct or len(distinct) > 1:
        raise click.ClickException("Descriptor versions are out of sync.")
    click.echo(f"✔ All descriptors at {distinct.pop()}")


# ── target ──────────────────────────────────────────────────────────


@cli.command()
def target() -> None:
    """Print the python-build-standalone target for this host."""
    from deskprep.services import runtime

    os_name, arch = runtime.host_platform()
    try:
        click.echo(runtime.resolve_target(os_name, arch))
    except PrepareError as exc:
        raise click.ClickException(str(exc)) from exc

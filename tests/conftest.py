import json

import pytest
from pathlib import Path
from click.testing import CliRunner

CARGO_TOML = """\
[package]
name = "astrbot-desktop-tauri"
version = "0.1.0"  # bumped by deskprep
edition = "2021"

[dependencies]
serde = { version = "1.0", features = ["derive"] }
"""

PYPROJECT = """\
[build-system]
requires = ["setuptools"]

[project]
name = "astrbot"
version = "1.9.1"
"""


@pytest.fixture
def runner():
    """Click CLI runner fixture."""
    return CliRunner()


@pytest.fixture
def desktop_project(tmp_path: Path) -> Path:
    """A desktop project with all three descriptors at 0.1.0."""
    src_tauri = tmp_path / "src-tauri"
    src_tauri.mkdir()
    (tmp_path / "package.json").write_text(
        json.dumps({"name": "astrbot-desktop", "version": "0.1.0", "private": True}, indent=2) + "\n"
    )
    (src_tauri / "tauri.conf.json").write_text(
        json.dumps({"productName": "AstrBot", "version": "0.1.0"}, indent=2) + "\n"
    )
    (src_tauri / "Cargo.toml").write_text(CARGO_TOML)
    return tmp_path


@pytest.fixture
def upstream_source(desktop_project: Path) -> Path:
    """A vendored AstrBot checkout at the default location."""
    source = desktop_project / "vendor" / "AstrBot"
    (source / ".git").mkdir(parents=True)
    (source / "pyproject.toml").write_text(PYPROJECT)
    return source


@pytest.fixture
def clean_env(monkeypatch):
    """Strip ASTRBOT_* variables so host settings never leak into tests."""
    import os

    for key in list(os.environ):
        if key.startswith("ASTRBOT_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch

"""Path constants and source-directory resolution."""

from __future__ import annotations

import os
from pathlib import Path

VENDOR_DIR = "vendor"
DEFAULT_SOURCE_DIRNAME = "AstrBot"
RESOURCES_DIR = "resources"
RUNTIME_DIR = "runtime"
RUNTIME_ROOT_NAME = "astrbot-cpython-runtime"
UPSTREAM_MANIFEST = "pyproject.toml"

PACKAGE_JSON = Path("package.json")
TAURI_CONF_JSON = Path("src-tauri") / "tauri.conf.json"
CARGO_TOML = Path("src-tauri") / "Cargo.toml"

RUNTIME_RESOLVER_SCRIPT = Path("scripts") / "cpython" / "resolve_packaged_cpython_runtime.py"


def resolve_source_dir(
    project_root: Path | str,
    override: str = "",
    working_dir: Path | str | None = None,
) -> Path:
    """Return the absolute directory the upstream source snapshot lives in.

    An override is always taken relative to *working_dir* (the caller's cwd
    by default), never to *project_root*, so CI can point at an out-of-tree
    checkout.
    """
    override = (override or "").strip()
    if override:
        base = Path(working_dir) if working_dir is not None else Path.cwd()
        return Path(os.path.normpath(os.path.join(os.path.abspath(base), override)))
    return Path(os.path.abspath(project_root)) / VENDOR_DIR / DEFAULT_SOURCE_DIRNAME


def resources_dir(root: Path) -> Path:
    return root / RESOURCES_DIR


def webui_dir(root: Path) -> Path:
    return resources_dir(root) / "webui"


def backend_dir(root: Path) -> Path:
    return resources_dir(root) / "backend"


def runtime_base(root: Path, target: str, version: str) -> Path:
    """Deterministic cache directory for one runtime target + version."""
    return root / RUNTIME_DIR / f"{target}-{version}"


def runtime_root(root: Path, target: str, version: str) -> Path:
    return runtime_base(root, target, version) / RUNTIME_ROOT_NAME


def descriptor_paths(root: Path) -> list[Path]:
    return [root / PACKAGE_JSON, root / TAURI_CONF_JSON, root / CARGO_TOML]

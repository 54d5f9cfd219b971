"""Backend service — stage the AstrBot sources and runtime under ``resources/backend``."""

from __future__ import annotations

import json
import shutil
from collections.abc import Callable
from pathlib import Path

from deskprep.core import paths
from deskprep.services import runtime

IGNORED_NAMES = (".git", "dashboard", "__pycache__", "node_modules", ".venv", "tests")

RUNTIME_MANIFEST = "runtime-manifest.json"


def stage_sources(source_dir: Path, dest: Path) -> Path:
    """Copy the backend source tree, minus VCS data, tests and the dashboard."""
    if dest.exists():
        shutil.rmtree(dest)
    shutil.copytree(source_dir, dest, ignore=shutil.ignore_patterns(*IGNORED_NAMES))
    return dest


def prepare_backend(
    *,
    source_dir: Path,
    project_root: Path,
    pbs_release: str,
    pbs_version: str,
    external_runtime: str = "",
    os_name: str | None = None,
    arch: str | None = None,
    on_progress: Callable[[str], None] | None = None,
) -> Path:
    emit = on_progress or (lambda _msg: None)
    host_os, host_arch = runtime.host_platform()
    os_name = os_name or host_os
    arch = arch or host_arch

    target = runtime.resolve_target(os_name, arch)
    emit(f"Preparing CPython {pbs_version} runtime for {target}…")
    runtime_root = runtime.locate_or_provision(
        project_root,
        target,
        pbs_version,
        pbs_release,
        external_runtime=external_runtime,
        os_name=os_name,
    )

    backend = paths.backend_dir(project_root)
    emit("Staging backend sources…")
    stage_sources(source_dir, backend / "app")

    python = runtime.find_runtime_python(runtime_root, os_name)
    manifest = {
        "target": target,
        "runtime_root": str(runtime_root),
        "python": str(python) if python else None,
        "python_build_standalone_release": pbs_release,
        "python_build_standalone_version": pbs_version,
        "platform": f"{os_name}/{arch}",
    }
    (backend / RUNTIME_MANIFEST).write_text(
        json.dumps(manifest, indent=2) + "\n", encoding="utf-8",
    )
    return backend

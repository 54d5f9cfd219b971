"""Runtime service — map the host to a python-build-standalone target and
make sure a CPython runtime for it is available under ``runtime/``.

Provisioning itself is delegated to ``scripts/cpython/resolve_packaged_cpython_runtime.py``
inside the desktop project. It is tried with each candidate interpreter in
order until one can be started.
"""

from __future__ import annotations

import logging
import os
import platform
import subprocess
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from deskprep.core import paths
from deskprep.core.errors import ProvisioningFailed, UnsupportedPlatform

logger = logging.getLogger(__name__)

_OS_ALIASES = {
    "linux": "linux",
    "darwin": "mac",
    "mac": "mac",
    "macos": "mac",
    "win32": "windows",
    "windows": "windows",
}

_ARCH_ALIASES = {
    "x64": "amd64",
    "x86_64": "amd64",
    "amd64": "amd64",
    "arm64": "arm64",
    "aarch64": "arm64",
}

TARGETS = {
    ("linux", "amd64"): "x86_64-unknown-linux-gnu",
    ("linux", "arm64"): "aarch64-unknown-linux-gnu",
    ("mac", "amd64"): "x86_64-apple-darwin",
    ("mac", "arm64"): "aarch64-apple-darwin",
    ("windows", "amd64"): "x86_64-pc-windows-msvc",
    ("windows", "arm64"): "aarch64-pc-windows-msvc",
}


def resolve_target(os_name: str, arch: str) -> str:
    """Return the target triple for *os_name*/*arch*, e.g. ``linux``/``x64``."""
    key = (
        _OS_ALIASES.get((os_name or "").strip().lower()),
        _ARCH_ALIASES.get((arch or "").strip().lower()),
    )
    target = TARGETS.get(key)
    if target is None:
        raise UnsupportedPlatform(os_name, arch)
    return target


def host_platform() -> tuple[str, str]:
    return sys.platform, platform.machine()


def _is_windows(os_name: str) -> bool:
    return _OS_ALIASES.get(os_name.lower()) == "windows"


def find_runtime_python(runtime_root: Path, os_name: str | None = None) -> Path | None:
    """First interpreter executable present under *runtime_root*, if any."""
    os_name = os_name or sys.platform
    if _is_windows(os_name):
        candidates = [runtime_root / "python.exe", runtime_root / "Scripts" / "python.exe"]
    else:
        candidates = [runtime_root / "bin" / "python3", runtime_root / "bin" / "python"]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


# ── Provisioning strategies ─────────────────────────────────────────


class AttemptStatus(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class Attempt:
    command: list[str]
    status: AttemptStatus
    detail: str = ""


Runner = Callable[..., subprocess.CompletedProcess]


def interpreter_candidates(os_name: str) -> list[list[str]]:
    if _is_windows(os_name):
        return [["python"], ["py", "-3"]]
    return [["python3"], ["python"]]


def _attempt(
    command: list[str], cwd: Path, env: Mapping[str, str], runner: Runner,
) -> Attempt:
    try:
        result = runner(command, cwd=str(cwd), env=dict(env))
    except FileNotFoundError as exc:
        return Attempt(command, AttemptStatus.NOT_FOUND, str(exc))
    if result.returncode != 0:
        return Attempt(command, AttemptStatus.FAILED, f"exit code {result.returncode}")
    return Attempt(command, AttemptStatus.SUCCESS)


def locate_or_provision(
    project_root: Path,
    target: str,
    version: str,
    release: str,
    *,
    external_runtime: str = "",
    os_name: str | None = None,
    runner: Runner | None = None,
) -> Path:
    """Return a CPython runtime root for *target*/*version*.

    Lookup order: explicit external runtime, then the cache directory
    ``runtime/<target>-<version>/``, then the resolver script.
    """
    os_name = os_name or sys.platform
    run = runner or subprocess.run

    if external_runtime and Path(external_runtime).exists():
        logger.info("Using external runtime %s", external_runtime)
        return Path(external_runtime)

    runtime_root = paths.runtime_root(project_root, target, version)
    if find_runtime_python(runtime_root, os_name):
        logger.info("Runtime cache hit: %s", runtime_root)
        return runtime_root

    runtime_base = paths.runtime_base(project_root, target, version)
    runtime_base.mkdir(parents=True, exist_ok=True)
    resolver = project_root / paths.RUNTIME_RESOLVER_SCRIPT
    env = {
        **os.environ,
        "RUNNER_TEMP_DIR": str(runtime_base),
        "PYTHON_BUILD_STANDALONE_RELEASE": release,
        "PYTHON_BUILD_STANDALONE_VERSION": version,
        "PYTHON_BUILD_STANDALONE_TARGET": target,
    }

    attempts: list[Attempt] = []
    for candidate in interpreter_candidates(os_name):
        attempt = _attempt([*candidate, str(resolver)], project_root, env, run)
        attempts.append(attempt)
        if attempt.status is AttemptStatus.NOT_FOUND:
            logger.debug("%s not available, trying next interpreter", candidate[0])
            continue
        if attempt.status is AttemptStatus.FAILED:
            raise ProvisioningFailed(
                f"Failed to prepare CPython runtime via {' '.join(candidate)} "
                f"({attempt.detail}): {resolver}"
            )
        logger.info("Provisioned runtime %s via %s", runtime_root, candidate[0])
        return runtime_root

    tried = ", ".join(" ".join(a.command[:-1]) for a in attempts)
    raise ProvisioningFailed(
        f"Cannot find Python interpreter to resolve CPython runtime (tried: {tried})."
    )

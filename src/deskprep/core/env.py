"""Environment-derived configuration for a preparation run."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_SOURCE_GIT_URL = "https://github.com/AstrBotDevs/AstrBot.git"
DEFAULT_PBS_RELEASE = "20260211"
DEFAULT_PBS_VERSION = "3.12.12"

TRUTHY_VALUES = frozenset({"1", "true", "yes", "on"})


def is_truthy(raw: str | None) -> bool:
    return (raw or "").strip().lower() in TRUTHY_VALUES


@dataclass(frozen=True)
class PrepareConfig:
    """Every knob a preparation run reads from the environment.

    Components receive individual fields, never the whole object.
    """

    source_repo_url: str = DEFAULT_SOURCE_GIT_URL
    source_repo_ref: str = ""
    source_ref_is_commit: str = ""
    source_dir_override: str = ""
    version_override_raw: str = ""
    pbs_release: str = DEFAULT_PBS_RELEASE
    pbs_version: str = DEFAULT_PBS_VERSION
    external_runtime: str = ""
    strict_bridge_expectations: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PrepareConfig:
        env = os.environ if environ is None else environ

        def _get(key: str, default: str = "") -> str:
            return (env.get(key) or "").strip() or default

        return cls(
            source_repo_url=_get("ASTRBOT_SOURCE_GIT_URL", DEFAULT_SOURCE_GIT_URL),
            source_repo_ref=_get("ASTRBOT_SOURCE_GIT_REF"),
            source_ref_is_commit=_get("ASTRBOT_SOURCE_GIT_REF_IS_COMMIT"),
            source_dir_override=_get("ASTRBOT_SOURCE_DIR"),
            version_override_raw=_get("ASTRBOT_DESKTOP_VERSION"),
            pbs_release=_get("ASTRBOT_PBS_RELEASE", DEFAULT_PBS_RELEASE),
            pbs_version=_get("ASTRBOT_PBS_VERSION", DEFAULT_PBS_VERSION),
            external_runtime=(
                _get("ASTRBOT_DESKTOP_BACKEND_RUNTIME")
                or _get("ASTRBOT_DESKTOP_CPYTHON_HOME")
            ),
            strict_bridge_expectations=is_truthy(
                env.get("ASTRBOT_DESKTOP_STRICT_BRIDGE_EXPECTATIONS")
            ),
        )


# ── dotenv loading ──────────────────────────────────────────────────


def load_project_env(project_root: Path, environ: dict[str, str] | None = None) -> list[Path]:
    """Load dotenv files into *environ* without overriding existing vars.

    Returns the files that were read.
    """
    env = os.environ if environ is None else environ
    loaded: list[Path] = []
    for env_file in _candidate_env_files(project_root, env):
        if _load_env_file(env_file, env):
            loaded.append(env_file)
    return loaded


def _candidate_env_files(project_root: Path, env: Mapping[str, str]) -> list[Path]:
    files: list[Path] = []
    env_override = (env.get("ASTRBOT_PREPARE_ENV_FILE") or "").strip()
    if env_override:
        files.append(Path(env_override).expanduser())
    files.append(project_root / ".env")
    return files


def _load_env_file(path: Path, env: dict[str, str]) -> bool:
    if not path.exists() or not path.is_file():
        return False

    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key or key in env:
            continue

        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        env[key] = value
    return True

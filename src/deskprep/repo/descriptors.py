"""Keep the desktop project's descriptor files on one version.

Three files carry the desktop version:

  package.json               top-level "version"
  src-tauri/tauri.conf.json  top-level "version"
  src-tauri/Cargo.toml       [package].version

A file is only rewritten when its value differs, so running the sync twice
leaves timestamps and formatting alone.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import tomlkit
from tomlkit.exceptions import TOMLKitError

from deskprep.core import paths
from deskprep.core.errors import DescriptorUnwritable, PrepareError, VersionFieldUnlocatable
from deskprep.core.models import FileSyncResult, SyncReport, SyncStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Descriptor:
    relpath: Path
    fmt: str  # "json" | "cargo"


DESCRIPTORS: tuple[Descriptor, ...] = (
    Descriptor(paths.PACKAGE_JSON, "json"),
    Descriptor(paths.TAURI_CONF_JSON, "json"),
    Descriptor(paths.CARGO_TOML, "cargo"),
)


# ── Public API ──────────────────────────────────────────────────────


def sync_versions(project_root: Path, version: str) -> SyncReport:
    """Write *version* into every descriptor under *project_root*.

    All files are attempted; failures are recorded per file rather than
    aborting the pass. Call ``raise_for_failures()`` on the result to turn
    them into an error. Nothing is rolled back.
    """
    report = SyncReport(version=version)
    for desc in DESCRIPTORS:
        path = Path(project_root) / desc.relpath
        try:
            result = _SYNCERS[desc.fmt](path, version)
        except PrepareError as exc:
            logger.error("%s", exc)
            result = FileSyncResult(path=path, status=SyncStatus.FAILED, error=exc)
        else:
            logger.info("%s: %s", desc.relpath, result.status.value)
        report.files.append(result)
    return report


def read_descriptor_versions(project_root: Path) -> dict[Path, str | None]:
    """Current version held by each descriptor (``None`` when unreadable)."""
    versions: dict[Path, str | None] = {}
    for desc in DESCRIPTORS:
        path = Path(project_root) / desc.relpath
        try:
            versions[desc.relpath] = _READERS[desc.fmt](path)
        except PrepareError as exc:
            logger.debug("cannot read %s: %s", path, exc)
            versions[desc.relpath] = None
    return versions


# ── JSON documents ──────────────────────────────────────────────────


def _load_json(path: Path) -> dict:
    if not path.exists():
        raise DescriptorUnwritable(path, "file not found")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise DescriptorUnwritable(path, f"cannot parse JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise DescriptorUnwritable(path, "top-level JSON value is not an object")
    return data


def _read_json_version(path: Path) -> str | None:
    value = _load_json(path).get("version")
    return value if isinstance(value, str) else None


def _sync_json(path: Path, version: str) -> FileSyncResult:
    data = _load_json(path)
    previous = data.get("version")
    if previous == version:
        return FileSyncResult(path, SyncStatus.UNCHANGED, previous=previous)

    # dicts keep insertion order, so the rewrite keeps the original key order
    data["version"] = version
    _write(path, f"{json.dumps(data, indent=2, ensure_ascii=False)}\n")
    return FileSyncResult(
        path, SyncStatus.UPDATED, previous=previous if isinstance(previous, str) else None,
    )


# ── Cargo.toml ──────────────────────────────────────────────────────


def _load_cargo(path: Path) -> tomlkit.TOMLDocument:
    if not path.exists():
        raise DescriptorUnwritable(path, "file not found")
    try:
        return tomlkit.parse(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise DescriptorUnwritable(path, f"cannot read file ({exc})") from exc
    except TOMLKitError as exc:
        raise DescriptorUnwritable(path, f"cannot parse TOML ({exc})") from exc


def _cargo_package(doc: tomlkit.TOMLDocument, path: Path):
    package = doc.get("package")
    if not hasattr(package, "get") or not isinstance(package.get("version"), str):
        raise VersionFieldUnlocatable(path)
    return package


def _read_cargo_version(path: Path) -> str | None:
    doc = _load_cargo(path)
    return str(_cargo_package(doc, path)["version"])


def _sync_cargo(path: Path, version: str) -> FileSyncResult:
    """Replace only ``[package].version``; every other byte round-trips."""
    doc = _load_cargo(path)
    package = _cargo_package(doc, path)
    previous = str(package["version"])
    if previous == version:
        return FileSyncResult(path, SyncStatus.UNCHANGED, previous=previous)

    package["version"] = version
    _write(path, tomlkit.dumps(doc))
    return FileSyncResult(path, SyncStatus.UPDATED, previous=previous)


# ── helpers ─────────────────────────────────────────────────────────


def _write(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise DescriptorUnwritable(path, str(exc)) from exc


_SYNCERS: dict[str, Callable[[Path, str], FileSyncResult]] = {
    "json": _sync_json,
    "cargo": _sync_cargo,
}

_READERS: dict[str, Callable[[Path], str | None]] = {
    "json": _read_json_version,
    "cargo": _read_cargo_version,
}

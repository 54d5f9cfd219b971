"""Upstream manifest (pyproject.toml) version extraction."""

from __future__ import annotations

import re
from pathlib import Path

from deskprep.core import paths
from deskprep.core.errors import ManifestMissing, VersionFieldMissing

_PREFIXED_VERSION = re.compile(r"^v\d", re.IGNORECASE)
_VERSION_LINE = re.compile(r"""^version\s*=\s*["']([^"']+)["']""")

METADATA_SECTION = "[project]"


def normalize_version(raw: str | None) -> str:
    """Trim and drop a leading ``v`` so versions compare without a prefix."""
    trimmed = (raw or "").strip()
    if not trimmed:
        return ""
    if _PREFIXED_VERSION.match(trimmed):
        return trimmed[1:]
    return trimmed


def read_upstream_version(source_dir: Path) -> str:
    """Return ``[project].version`` from the source tree's pyproject.toml.

    Line-oriented on purpose: only the ``[project]`` section counts, so a
    ``version`` key under ``[tool.*]`` or ``[build-system]`` is ignored.
    """
    manifest = Path(source_dir) / paths.UPSTREAM_MANIFEST
    if not manifest.exists():
        raise ManifestMissing(Path(source_dir))

    try:
        # utf-8-sig so a BOM does not hide a leading [project] header
        content = manifest.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise VersionFieldMissing(manifest, f"cannot read file ({exc})") from exc

    in_project = False
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        if line.startswith("[") and line.endswith("]"):
            in_project = line == METADATA_SECTION
            continue

        if not in_project:
            continue

        match = _VERSION_LINE.match(line)
        if match:
            return match.group(1).strip()

    raise VersionFieldMissing(manifest)

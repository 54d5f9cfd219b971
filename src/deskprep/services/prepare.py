"""Prepare service — implements `deskprep prepare MODE`.

Order of work for one run:

  1. resolve the clone target and classify its ref
  2. fetch the source tree (skipped for `version` with an override)
  3. pick the version: override wins, upstream pyproject otherwise
  4. sync the descriptor files
  5. run the mode tasks (webui, backend, or both)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from deskprep.core import paths
from deskprep.core.env import PrepareConfig
from deskprep.core.errors import UnsupportedMode
from deskprep.core.manifest import normalize_version, read_upstream_version
from deskprep.core.models import PrepareReport
from deskprep.fetchers import browse_url, classify_ref, git, normalize_repo_location
from deskprep.repo.descriptors import sync_versions
from deskprep.services import backend, webui

logger = logging.getLogger(__name__)

MODES = ("version", "webui", "backend", "all")


def detect_drift(override: str, upstream: str) -> str:
    """Message describing override/upstream disagreement, or ``""``.

    Comparison is literal after normalization: ``1.2`` and ``1.2.0`` differ.
    """
    if not override or override == upstream:
        return ""
    return f"override {override} differs from source pyproject version {upstream}"


def prepare(
    project_root: Path,
    mode: str,
    config: PrepareConfig,
    *,
    working_dir: Path | None = None,
    on_progress: Callable[[str], None] | None = None,
) -> PrepareReport:
    """Run one preparation pass and return what was done.

    Raises a ``PrepareError`` subclass on the first terminal failure.
    """
    emit = on_progress or (lambda _msg: None)
    if mode not in MODES:
        raise UnsupportedMode(mode, MODES)

    project_root = Path(project_root)
    location = normalize_repo_location(config.source_repo_url, config.source_repo_ref)
    ref_info = classify_ref(location.ref, config.source_ref_is_commit)
    source_dir = paths.resolve_source_dir(
        project_root, config.source_dir_override, working_dir,
    )

    override = normalize_version(config.version_override_raw)
    if config.version_override_raw and config.version_override_raw != override:
        logger.info(
            "Normalized ASTRBOT_DESKTOP_VERSION from %s to %s",
            config.version_override_raw, override,
        )

    needs_source = mode != "version" or not override
    paths.resources_dir(project_root).mkdir(parents=True, exist_ok=True)

    if needs_source:
        git.ensure_source_repo(
            source_dir,
            location,
            ref_info,
            override_used=bool(config.source_dir_override),
            on_progress=emit,
        )
    else:
        logger.info("Skip source repo sync in version-only mode because an override is set")

    drift = ""
    if override:
        version, version_source = override, "override"
        if needs_source:
            drift = detect_drift(override, read_upstream_version(source_dir))
            if drift:
                logger.warning("Version override drift detected (%s): %s", source_dir, drift)
    else:
        version, version_source = read_upstream_version(source_dir), "upstream"

    emit(f"Syncing descriptors to {version}…")
    sync_report = sync_versions(project_root, version)
    sync_report.raise_for_failures()

    report = PrepareReport(
        mode=mode,
        version=version,
        version_source=version_source,
        source_dir=source_dir,
        sync=sync_report,
        drift=drift,
    )

    if mode in ("webui", "all"):
        report.webui_dir = webui.prepare_webui(
            source_dir=source_dir,
            project_root=project_root,
            repo_browse_url=browse_url(location),
            source_ref=ref_info.ref,
            is_version_tag=ref_info.is_version_tag,
            strict_bridge_expectations=config.strict_bridge_expectations,
            on_progress=emit,
        )

    if mode in ("backend", "all"):
        report.backend_dir = backend.prepare_backend(
            source_dir=source_dir,
            project_root=project_root,
            pbs_release=config.pbs_release,
            pbs_version=config.pbs_version,
            external_runtime=config.external_runtime,
            on_progress=emit,
        )

    return report

"""WebUI service — put the dashboard bundle into ``resources/webui``.

Tagged releases publish a prebuilt ``dist.zip``; that is preferred for version
tags. Everything else (and any download failure) builds the dashboard from
the source tree with pnpm or npm.
"""

from __future__ import annotations

import io
import logging
import shutil
import subprocess
import zipfile
from collections.abc import Callable
from pathlib import Path

import httpx

from deskprep.core import paths
from deskprep.core.errors import WebuiBuildFailed

logger = logging.getLogger(__name__)

_REQUEST_TIMEOUT = 60.0
BRIDGE_MARKER = "astrbot-desktop-bridge"
PACKAGE_MANAGERS = ("pnpm", "npm")


def release_asset_url(repo_browse_url: str, tag: str) -> str:
    return f"{repo_browse_url.rstrip('/')}/releases/download/{tag}/dist.zip"


def download_prebuilt(url: str, dest: Path, *, client: httpx.Client | None = None) -> bool:
    """Fetch and unpack a dashboard ``dist.zip`` into *dest*.

    Returns False on any HTTP or archive problem so the caller can fall back
    to building from source.
    """
    owns_client = client is None
    client = client or httpx.Client(timeout=_REQUEST_TIMEOUT, follow_redirects=True)
    try:
        resp = client.get(url)
        if resp.status_code >= 400:
            logger.info("No prebuilt dashboard at %s (HTTP %s)", url, resp.status_code)
            return False
        payload = resp.content
    except httpx.HTTPError as exc:
        logger.warning("Downloading %s failed: %s", url, exc)
        return False
    finally:
        if owns_client:
            client.close()

    try:
        with zipfile.ZipFile(io.BytesIO(payload)) as archive:
            staging = dest.parent / f".{dest.name}-staging"
            if staging.exists():
                shutil.rmtree(staging)
            archive.extractall(staging)
    except zipfile.BadZipFile as exc:
        logger.warning("Prebuilt dashboard at %s is not a zip archive: %s", url, exc)
        return False

    # archives ship either the files directly or a single dist/ folder
    root = staging / "dist" if (staging / "dist" / "index.html").exists() else staging
    if not (root / "index.html").exists():
        logger.warning("Prebuilt dashboard at %s has no index.html", url)
        shutil.rmtree(staging, ignore_errors=True)
        return False
    _replace_dir(root, dest)
    shutil.rmtree(staging, ignore_errors=True)
    return True


def build_from_source(source_dir: Path, dest: Path, *, runner=None) -> None:
    """Install dependencies and build ``<source>/dashboard``, then copy ``dist``."""
    run = runner or subprocess.run
    dashboard = source_dir / "dashboard"
    if not (dashboard / "package.json").exists():
        raise WebuiBuildFailed(f"Dashboard project not found: {dashboard}")

    for manager in PACKAGE_MANAGERS:
        try:
            install = run([manager, "install"], cwd=str(dashboard))
        except FileNotFoundError:
            logger.debug("%s not available, trying next package manager", manager)
            continue
        if install.returncode != 0:
            raise WebuiBuildFailed(f"{manager} install failed in {dashboard}")
        build = run([manager, "run", "build"], cwd=str(dashboard))
        if build.returncode != 0:
            raise WebuiBuildFailed(f"{manager} run build failed in {dashboard}")
        break
    else:
        raise WebuiBuildFailed(
            f"No package manager found to build the dashboard (tried: {', '.join(PACKAGE_MANAGERS)})"
        )

    dist = dashboard / "dist"
    if not (dist / "index.html").exists():
        raise WebuiBuildFailed(f"Dashboard build did not produce {dist / 'index.html'}")
    _replace_dir(dist, dest)


def check_bridge_expectations(webui: Path, *, strict: bool) -> bool:
    """Check that the bundle references the desktop bridge script."""
    index = webui / "index.html"
    if BRIDGE_MARKER in index.read_text(encoding="utf-8", errors="replace"):
        return True
    message = f"{index} does not reference {BRIDGE_MARKER}"
    if strict:
        raise WebuiBuildFailed(message)
    logger.warning("%s; desktop bridge features may be unavailable", message)
    return False


def prepare_webui(
    *,
    source_dir: Path,
    project_root: Path,
    repo_browse_url: str,
    source_ref: str,
    is_version_tag: bool,
    strict_bridge_expectations: bool = False,
    on_progress: Callable[[str], None] | None = None,
) -> Path:
    emit = on_progress or (lambda _msg: None)
    dest = paths.webui_dir(project_root)
    dest.parent.mkdir(parents=True, exist_ok=True)

    fetched = False
    if is_version_tag:
        url = release_asset_url(repo_browse_url, source_ref)
        emit(f"Downloading prebuilt dashboard for {source_ref}…")
        fetched = download_prebuilt(url, dest)

    if not fetched:
        emit("Building dashboard from source…")
        build_from_source(source_dir, dest)

    if not (dest / "index.html").exists():
        raise WebuiBuildFailed(f"WebUI index is missing at {dest / 'index.html'}")

    check_bridge_expectations(dest, strict=strict_bridge_expectations)
    return dest


def _replace_dir(src: Path, dest: Path) -> None:
    if dest.exists():
        shutil.rmtree(dest)
    shutil.copytree(src, dest)

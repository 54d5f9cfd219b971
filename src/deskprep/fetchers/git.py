"""Acquire the upstream source tree with git.

Refs are fetched shallow (depth 1) whatever their kind, so even a pinned
commit costs a single round-trip instead of a full history clone.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable
from pathlib import Path

from deskprep.core.errors import AcquisitionFailed
from deskprep.core.models import RefClassification, RepoLocation

logger = logging.getLogger(__name__)


def _run(args: list[str], **kwargs) -> subprocess.CompletedProcess:
    logger.debug("$ %s", " ".join(args))
    try:
        return subprocess.run(args, capture_output=True, text=True, **kwargs)
    except FileNotFoundError as exc:
        raise AcquisitionFailed(f"git executable not found: {exc}") from exc


def _git(repo: Path, *args: str) -> subprocess.CompletedProcess:
    r = _run(["git", "-C", str(repo), *args])
    if r.returncode != 0:
        raise AcquisitionFailed(
            f"git {args[0]} failed in {repo}: {r.stderr.strip() or r.stdout.strip()}"
        )
    return r


def _shallow_clone(location: RepoLocation, dest: Path) -> None:
    """Clone a branch or tag (or the default branch when ref is empty)."""
    args = ["git", "clone", "--depth", "1"]
    if location.ref:
        args += ["--branch", location.ref]
    args += [location.clone_url, str(dest)]
    r = _run(args)
    if r.returncode != 0:
        raise AcquisitionFailed(
            f"git clone {location.clone_url} ({location.ref or 'default branch'}) "
            f"failed: {r.stderr.strip()}"
        )


def _commit_clone(location: RepoLocation, dest: Path) -> None:
    """Materialize a single commit — `git clone --branch` cannot take a SHA."""
    dest.mkdir(parents=True, exist_ok=True)
    _git(dest, "init", "--quiet")
    _git(dest, "remote", "add", "origin", location.clone_url)
    _checkout_ref(dest, location.ref)


def _checkout_ref(repo: Path, ref: str) -> None:
    _git(repo, "fetch", "--depth", "1", "origin", ref or "HEAD")
    _git(repo, "checkout", "--force", "--detach", "FETCH_HEAD")


def _update_existing(repo: Path, location: RepoLocation) -> None:
    r = _run(["git", "-C", str(repo), "remote", "get-url", "origin"])
    if r.returncode != 0:
        _git(repo, "remote", "add", "origin", location.clone_url)
    elif r.stdout.strip() != location.clone_url:
        _git(repo, "remote", "set-url", "origin", location.clone_url)
    _checkout_ref(repo, location.ref)


def head_commit(repo: Path) -> str:
    return _git(repo, "rev-parse", "HEAD").stdout.strip()


def ensure_source_repo(
    source_dir: Path,
    location: RepoLocation,
    ref_info: RefClassification,
    *,
    override_used: bool = False,
    on_progress: Callable[[str], None] | None = None,
) -> Path:
    """Make *source_dir* hold the requested snapshot of *location*.

    An override directory that already exists is used as-is: CI callers
    manage that checkout themselves.
    """
    emit = on_progress or (lambda _msg: None)
    source_dir = Path(source_dir)

    if override_used and source_dir.exists():
        logger.info("Using source directory override as-is: %s", source_dir)
        return source_dir

    if not source_dir.exists():
        source_dir.parent.mkdir(parents=True, exist_ok=True)
        if ref_info.is_commit:
            emit(f"Fetching commit {ref_info.ref}…")
            _commit_clone(location, source_dir)
        else:
            emit(f"Cloning {location.clone_url}…")
            _shallow_clone(location, source_dir)
        logger.info("Cloned %s at %s into %s", location.clone_url, head_commit(source_dir), source_dir)
        return source_dir

    if not (source_dir / ".git").exists():
        raise AcquisitionFailed(
            f"Source directory exists but is not a git checkout: {source_dir}"
        )

    emit(f"Updating {source_dir.name} to {location.ref or 'default branch'}…")
    _update_existing(source_dir, location)
    logger.info("Updated %s to %s", source_dir, head_commit(source_dir))
    return source_dir

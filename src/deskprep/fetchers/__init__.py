"""Source location handling — normalize the repository URL and classify refs.

Accepted repository inputs:
  https://github.com/org/repo                   → .../repo.git
  https://github.com/org/repo.git               → unchanged
  https://github.com/org/repo/tree/<ref>/sub    → .../repo.git, ref=<ref>
  git@host:org/repo                             → git@host:org/repo.git
"""

from __future__ import annotations

import re

from deskprep.core.env import DEFAULT_SOURCE_GIT_URL, is_truthy
from deskprep.core.models import RefClassification, RepoLocation

ARCHIVE_SUFFIX = ".git"

_TREE_URL = re.compile(r"^(?P<base>.+?)/tree/(?P<ref>[^/?#]+)(?:[/?#].*)?$")
_COMMIT_SHA = re.compile(r"^[0-9a-f]{7,}$", re.IGNORECASE)
_VERSION_TAG = re.compile(r"^v\d", re.IGNORECASE)


def normalize_repo_location(raw_url: str, explicit_ref: str = "") -> RepoLocation:
    """Turn a raw repository URL plus optional ref into a clone target.

    An explicit ref always beats one embedded in a ``/tree/<ref>`` URL.
    Never raises; odd input is passed through as a best-effort URL.
    """
    url = (raw_url or "").strip() or DEFAULT_SOURCE_GIT_URL
    url_ref = ""

    tree = _TREE_URL.match(url)
    if tree:
        url = tree.group("base")
        url_ref = tree.group("ref")

    url = url.rstrip("/")
    if not url.endswith(ARCHIVE_SUFFIX):
        url += ARCHIVE_SUFFIX

    ref = (explicit_ref or "").strip() or url_ref
    return RepoLocation(clone_url=url, ref=ref)


def classify_ref(ref: str, explicit_commit_hint: str = "") -> RefClassification:
    """Decide whether *ref* names a commit, a version tag, or a branch.

    A truthy *explicit_commit_hint* (1/true/yes/on) forces commit.
    """
    ref = (ref or "").strip()
    if is_truthy(explicit_commit_hint):
        return RefClassification(ref=ref, is_commit=True, is_version_tag=False)
    if _COMMIT_SHA.match(ref):
        return RefClassification(ref=ref, is_commit=True)
    if _VERSION_TAG.match(ref):
        return RefClassification(ref=ref, is_version_tag=True)
    return RefClassification(ref=ref)


def browse_url(location: RepoLocation) -> str:
    """Web address of the repository without the archive suffix."""
    url = location.clone_url
    if url.endswith(ARCHIVE_SUFFIX):
        url = url[: -len(ARCHIVE_SUFFIX)]
    return url

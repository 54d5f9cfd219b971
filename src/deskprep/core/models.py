"""Data shapes for source resolution and version synchronization."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from deskprep.core.errors import DescriptorError, PrepareError


# ── Source layer ────────────────────────────────────────────────────


@dataclass(frozen=True)
class RepoLocation:
    """Canonical clone target. ``clone_url`` always ends in ``.git``."""
    clone_url: str
    ref: str = ""


@dataclass(frozen=True)
class RefClassification:
    ref: str
    is_commit: bool = False
    is_version_tag: bool = False

    @property
    def is_branch(self) -> bool:
        return bool(self.ref) and not (self.is_commit or self.is_version_tag)


# ── Descriptor layer ────────────────────────────────────────────────


class SyncStatus(str, Enum):
    UNCHANGED = "unchanged"
    UPDATED = "updated"
    FAILED = "failed"


@dataclass
class FileSyncResult:
    """Outcome of projecting the version onto one descriptor file."""
    path: Path
    status: SyncStatus
    previous: str | None = None
    error: PrepareError | None = None


@dataclass
class SyncReport:
    """Aggregated per-file outcomes of one synchronization pass."""

    version: str
    files: list[FileSyncResult] = field(default_factory=list)

    @property
    def updated(self) -> list[Path]:
        return [f.path for f in self.files if f.status is SyncStatus.UPDATED]

    @property
    def unchanged(self) -> list[Path]:
        return [f.path for f in self.files if f.status is SyncStatus.UNCHANGED]

    @property
    def failed(self) -> list[FileSyncResult]:
        return [f for f in self.files if f.status is SyncStatus.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failed

    def raise_for_failures(self) -> None:
        """Raise the first failure, noting which files were already written.

        Written files are not rolled back; rerunning after fixing the cause
        converges.
        """
        errors = [f.error for f in self.failed if f.error is not None]
        if not errors:
            return
        error = errors[0]
        if self.updated and isinstance(error, DescriptorError):
            raise error.with_updated(self.updated) from error
        raise error


# ── Orchestration layer ─────────────────────────────────────────────


@dataclass
class PrepareReport:
    mode: str
    version: str
    version_source: str  # "override" | "upstream"
    source_dir: Path
    sync: SyncReport
    drift: str = ""
    webui_dir: Path | None = None
    backend_dir: Path | None = None

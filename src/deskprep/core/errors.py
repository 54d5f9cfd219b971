"""Error taxonomy for resource preparation.

Every error is terminal for the current invocation; the CLI turns it into a
single message and a non-zero exit.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class PrepareError(Exception):
    """Base class for all preparation failures."""


class UnsupportedMode(PrepareError):
    def __init__(self, mode: str, expected: tuple[str, ...]) -> None:
        self.mode = mode
        super().__init__(f"Unsupported mode: {mode}. Expected {'/'.join(expected)}.")


class ManifestMissing(PrepareError):
    def __init__(self, source_dir: Path) -> None:
        self.source_dir = source_dir
        super().__init__(f"Cannot find pyproject.toml in source directory: {source_dir}")


class VersionFieldMissing(PrepareError):
    def __init__(self, manifest: Path, reason: str = "") -> None:
        self.manifest = manifest
        self.reason = reason
        message = f"Cannot resolve [project].version from {manifest}"
        super().__init__(f"{message}: {reason}" if reason else message)


class DescriptorError(PrepareError):
    """A failure on one descriptor file during version sync.

    ``already_updated`` lists the descriptors written earlier in the same
    pass; they stay written.
    """

    def __init__(self, path: Path, message: str, already_updated: Sequence[Path] = ()) -> None:
        self.path = path
        self.already_updated = tuple(already_updated)
        if self.already_updated:
            done = ", ".join(str(p) for p in self.already_updated)
            message = f"{message} (already updated: {done})"
        super().__init__(message)

    def with_updated(self, updated: Sequence[Path]) -> DescriptorError:
        raise NotImplementedError


class DescriptorUnwritable(DescriptorError):
    def __init__(self, path: Path, reason: str, already_updated: Sequence[Path] = ()) -> None:
        self.reason = reason
        super().__init__(path, f"Cannot update descriptor {path}: {reason}", already_updated)

    def with_updated(self, updated: Sequence[Path]) -> DescriptorUnwritable:
        return DescriptorUnwritable(self.path, self.reason, updated)


class VersionFieldUnlocatable(DescriptorError):
    def __init__(self, path: Path, already_updated: Sequence[Path] = ()) -> None:
        super().__init__(path, f"Cannot update Cargo package version in {path}", already_updated)

    def with_updated(self, updated: Sequence[Path]) -> VersionFieldUnlocatable:
        return VersionFieldUnlocatable(self.path, updated)


class UnsupportedPlatform(PrepareError):
    def __init__(self, os_name: str, arch: str) -> None:
        self.os_name = os_name
        self.arch = arch
        super().__init__(
            f"Unsupported platform/arch for python-build-standalone: {os_name}/{arch}"
        )


class ProvisioningFailed(PrepareError):
    """The external runtime resolver could not be run successfully."""


class AcquisitionFailed(PrepareError):
    """Fetching or updating the upstream source tree failed."""


class WebuiBuildFailed(PrepareError):
    """The dashboard bundle could not be produced."""

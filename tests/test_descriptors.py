import json
from pathlib import Path

import pytest

from deskprep.core.errors import DescriptorUnwritable, VersionFieldUnlocatable
from deskprep.core.models import SyncStatus
from deskprep.repo.descriptors import read_descriptor_versions, sync_versions


def test_sync_updates_all_descriptors(desktop_project):
    report = sync_versions(desktop_project, "2.3.4")

    assert report.ok
    assert len(report.updated) == 3
    assert all(v == "2.3.4" for v in read_descriptor_versions(desktop_project).values())

    package = json.loads((desktop_project / "package.json").read_text())
    assert list(package) == ["name", "version", "private"]


def test_cargo_rewrite_touches_only_package_version(desktop_project):
    sync_versions(desktop_project, "2.3.4")
    cargo = (desktop_project / "src-tauri" / "Cargo.toml").read_text()

    assert 'version = "2.3.4"' in cargo
    assert "# bumped by deskprep" in cargo
    assert 'serde = { version = "1.0", features = ["derive"] }' in cargo
    assert 'edition = "2021"' in cargo


def test_second_sync_writes_nothing(desktop_project):
    sync_versions(desktop_project, "2.3.4")
    files = [desktop_project / p for p in read_descriptor_versions(desktop_project)]
    mtimes = {f: f.stat().st_mtime_ns for f in files}

    report = sync_versions(desktop_project, "2.3.4")

    assert report.updated == []
    assert all(f.status is SyncStatus.UNCHANGED for f in report.files)
    assert {f: f.stat().st_mtime_ns for f in files} == mtimes


def test_previous_version_is_recorded(desktop_project):
    report = sync_versions(desktop_project, "1.0.0")
    assert {f.previous for f in report.files} == {"0.1.0"}


def test_missing_file_is_reported_per_file(desktop_project):
    (desktop_project / "src-tauri" / "tauri.conf.json").unlink()

    report = sync_versions(desktop_project, "2.3.4")

    assert [f.status for f in report.files] == [
        SyncStatus.UPDATED, SyncStatus.FAILED, SyncStatus.UPDATED,
    ]
    with pytest.raises(DescriptorUnwritable) as exc:
        report.raise_for_failures()
    message = str(exc.value)
    assert "tauri.conf.json" in message
    assert "already updated" in message
    assert "package.json" in message


def test_cargo_without_package_version(desktop_project):
    (desktop_project / "src-tauri" / "Cargo.toml").write_text(
        '[workspace]\nmembers = ["a"]\n\n[dependencies]\nversion = "1"\n'
    )
    report = sync_versions(desktop_project, "2.3.4")
    assert isinstance(report.failed[0].error, VersionFieldUnlocatable)
    with pytest.raises(VersionFieldUnlocatable):
        report.raise_for_failures()


def test_cargo_workspace_inherited_version_is_unlocatable(desktop_project):
    (desktop_project / "src-tauri" / "Cargo.toml").write_text(
        '[package]\nname = "x"\nversion.workspace = true\n'
    )
    report = sync_versions(desktop_project, "2.3.4")
    assert isinstance(report.failed[0].error, VersionFieldUnlocatable)


def test_invalid_json_is_unwritable(desktop_project):
    (desktop_project / "package.json").write_text("{not json")
    report = sync_versions(desktop_project, "2.3.4")
    assert report.failed[0].path == desktop_project / "package.json"
    assert isinstance(report.failed[0].error, DescriptorUnwritable)


def test_read_versions_marks_unreadable(desktop_project):
    (desktop_project / "package.json").unlink()
    versions = read_descriptor_versions(desktop_project)
    assert versions[Path("package.json")] is None
    assert versions[Path("src-tauri") / "Cargo.toml"] == "0.1.0"


def test_undecodable_cargo_is_recorded_not_raised(desktop_project):
    (desktop_project / "src-tauri" / "Cargo.toml").write_bytes(
        b'[package]\nname = "\xff"\nversion = "0.1.0"\n'
    )

    report = sync_versions(desktop_project, "2.0.0")

    assert [f.status for f in report.files] == [
        SyncStatus.UPDATED, SyncStatus.UPDATED, SyncStatus.FAILED,
    ]
    error = report.failed[0].error
    assert isinstance(error, DescriptorUnwritable)
    assert "Cargo.toml" in str(error)


def test_raise_for_failures_is_repeatable(desktop_project):
    (desktop_project / "src-tauri" / "tauri.conf.json").unlink()
    report = sync_versions(desktop_project, "2.3.4")

    messages = []
    for _ in range(2):
        with pytest.raises(DescriptorUnwritable) as exc:
            report.raise_for_failures()
        messages.append(str(exc.value))

    assert messages[0] == messages[1]
    assert messages[0].count("already updated") == 1
    assert exc.value.already_updated == tuple(report.updated)
    assert "already updated" not in str(report.failed[0].error)

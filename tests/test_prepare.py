from unittest.mock import patch

import pytest

from deskprep.core.env import PrepareConfig
from deskprep.core.errors import DescriptorUnwritable, ManifestMissing, UnsupportedMode
from deskprep.repo.descriptors import read_descriptor_versions
from deskprep.services.prepare import detect_drift, prepare


@patch("deskprep.fetchers.git.ensure_source_repo")
def test_version_mode_with_override_skips_source(mock_ensure, desktop_project):
    report = prepare(desktop_project, "version", PrepareConfig(version_override_raw=" v3.0.0 "))

    mock_ensure.assert_not_called()
    assert report.version == "3.0.0"
    assert report.version_source == "override"
    assert report.drift == ""
    assert set(read_descriptor_versions(desktop_project).values()) == {"3.0.0"}
    assert (desktop_project / "resources").is_dir()


@patch("deskprep.fetchers.git.ensure_source_repo")
def test_version_mode_reads_upstream(mock_ensure, desktop_project, upstream_source):
    report = prepare(
        desktop_project, "version",
        PrepareConfig(source_repo_url="https://github.com/org/repo/tree/v1.9.1"),
    )

    location, ref_info = mock_ensure.call_args.args[1:3]
    assert location.clone_url == "https://github.com/org/repo.git"
    assert ref_info.is_version_tag
    assert mock_ensure.call_args.args[0] == upstream_source
    assert report.version == "1.9.1"
    assert report.version_source == "upstream"


@patch("deskprep.fetchers.git.ensure_source_repo")
def test_override_drift_is_reported_not_fatal(mock_ensure, desktop_project, upstream_source):
    with patch("deskprep.services.webui.prepare_webui") as mock_webui:
        report = prepare(desktop_project, "webui", PrepareConfig(version_override_raw="2.0.0-rc1"))

    assert report.version == "2.0.0-rc1"
    assert "1.9.1" in report.drift
    mock_webui.assert_called_once()
    assert set(read_descriptor_versions(desktop_project).values()) == {"2.0.0-rc1"}


@patch("deskprep.fetchers.git.ensure_source_repo")
def test_all_runs_both_tasks(mock_ensure, desktop_project, upstream_source):
    with patch("deskprep.services.webui.prepare_webui") as mock_webui, \
            patch("deskprep.services.backend.prepare_backend") as mock_backend:
        report = prepare(desktop_project, "all", PrepareConfig(pbs_version="3.11.0"))

    assert mock_webui.call_args.kwargs["is_version_tag"] is False
    assert mock_backend.call_args.kwargs["pbs_version"] == "3.11.0"
    assert report.webui_dir is mock_webui.return_value
    assert report.backend_dir is mock_backend.return_value


@patch("deskprep.fetchers.git.ensure_source_repo")
def test_unsupported_mode_fails_before_side_effects(mock_ensure, desktop_project):
    with pytest.raises(UnsupportedMode) as exc:
        prepare(desktop_project, "docs", PrepareConfig())
    assert "docs" in str(exc.value)
    mock_ensure.assert_not_called()
    assert not (desktop_project / "resources").exists()


@patch("deskprep.fetchers.git.ensure_source_repo")
def test_missing_manifest(mock_ensure, desktop_project):
    with pytest.raises(ManifestMissing):
        prepare(desktop_project, "version", PrepareConfig())


@patch("deskprep.fetchers.git.ensure_source_repo")
def test_sync_failure_stops_mode_tasks(mock_ensure, desktop_project, upstream_source):
    (desktop_project / "package.json").unlink()
    with patch("deskprep.services.backend.prepare_backend") as mock_backend:
        with pytest.raises(DescriptorUnwritable):
            prepare(desktop_project, "backend", PrepareConfig())
    mock_backend.assert_not_called()


def test_source_dir_override_resolves_against_working_dir(desktop_project, tmp_path):
    checkout = tmp_path / "ci" / "astrbot"
    checkout.mkdir(parents=True)
    (checkout / "pyproject.toml").write_text('[project]\nversion = "5.0.0"\n')

    report = prepare(
        desktop_project, "version",
        PrepareConfig(source_dir_override="ci/astrbot"),
        working_dir=tmp_path,
    )
    assert report.source_dir == checkout
    assert report.version == "5.0.0"


def test_detect_drift_is_literal():
    assert detect_drift("", "1.0.0") == ""
    assert detect_drift("1.0.0", "1.0.0") == ""
    assert detect_drift("1.0", "1.0.0") != ""

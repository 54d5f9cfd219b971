import json
from unittest.mock import patch

from deskprep.core import paths
from deskprep.services import backend


def test_stage_sources_skips_vcs_and_dashboard(upstream_source, tmp_path):
    (upstream_source / "astrbot").mkdir()
    (upstream_source / "astrbot" / "main.py").write_text("")
    (upstream_source / "dashboard").mkdir()
    (upstream_source / "dashboard" / "package.json").write_text("{}")

    dest = backend.stage_sources(upstream_source, tmp_path / "app")

    assert (dest / "astrbot" / "main.py").exists()
    assert (dest / "pyproject.toml").exists()
    assert not (dest / ".git").exists()
    assert not (dest / "dashboard").exists()


@patch("deskprep.services.runtime.locate_or_provision")
def test_prepare_backend_writes_manifest(mock_locate, desktop_project, upstream_source):
    runtime_root = paths.runtime_root(desktop_project, "aarch64-apple-darwin", "3.12.12")
    (runtime_root / "bin").mkdir(parents=True)
    (runtime_root / "bin" / "python3").write_text("")
    mock_locate.return_value = runtime_root

    out = backend.prepare_backend(
        source_dir=upstream_source,
        project_root=desktop_project,
        pbs_release="20260211",
        pbs_version="3.12.12",
        os_name="darwin",
        arch="arm64",
    )

    assert out == paths.backend_dir(desktop_project)
    manifest = json.loads((out / backend.RUNTIME_MANIFEST).read_text())
    assert manifest["target"] == "aarch64-apple-darwin"
    assert manifest["python"] == str(runtime_root / "bin" / "python3")
    assert (out / "app" / "pyproject.toml").exists()
    assert mock_locate.call_args.args[1:] == ("aarch64-apple-darwin", "3.12.12", "20260211")

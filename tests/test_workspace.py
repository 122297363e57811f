import pytest

import whisper_pipeline.workspace as ws_module
from whisper_pipeline.errors import WorkspaceError
from whisper_pipeline.workspace import Workspace


def test_create_and_destroy(tmp_path):
    ws = Workspace.create(str(tmp_path))
    assert ws.path.is_dir()
    assert ws.path.parent == tmp_path
    assert ws.path.name.startswith(ws_module.WORKSPACE_PREFIX)
    (ws.path / "sub").mkdir()
    (ws.path / "sub" / "audio.wav").write_bytes(b"data")
    ws.destroy()
    assert not ws.path.exists()
    assert ws.destroyed


def test_names_are_unique(tmp_path):
    a = Workspace.create(str(tmp_path))
    b = Workspace.create(str(tmp_path))
    assert a.path != b.path
    a.destroy()
    b.destroy()


def test_destroy_is_idempotent(tmp_path):
    ws = Workspace.create(str(tmp_path))
    ws.destroy()
    ws.destroy()
    assert not ws.path.exists()


def test_destroy_tolerates_directory_already_gone(tmp_path):
    ws = Workspace.create(str(tmp_path))
    ws.path.rmdir()
    ws.destroy()


def test_destroy_never_raises(tmp_path, monkeypatch, caplog):
    ws = Workspace.create(str(tmp_path))

    def boom(path):
        raise PermissionError("locked")

    monkeypatch.setattr(ws_module.shutil, "rmtree", boom)
    ws.destroy()
    assert "Error cleaning up workspace" in caplog.text


def test_context_manager_cleans_up_on_error(tmp_path):
    with pytest.raises(RuntimeError):
        with Workspace.create(str(tmp_path)) as ws:
            (ws.path / "audio.webm").write_bytes(b"x")
            raise RuntimeError("stage blew up")
    assert not ws.path.exists()


def test_create_failure_is_workspace_error(tmp_path):
    with pytest.raises(WorkspaceError) as info:
        Workspace.create(str(tmp_path / "missing" / "root"))
    assert info.value.stage is None

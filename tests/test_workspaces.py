from __future__ import annotations

import sys
import uuid
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from devsite.core import workspaces as workspaces_module
from devsite.core.errors import WorkspaceCreateFailed, WorkspaceWriteFailed
from devsite.core.workspaces import WorkspaceManager


@pytest.fixture()
def manager(tmp_path):
    return WorkspaceManager(tmp_path / "compile", source_extension="qat")


def test_provision_creates_isolated_layout(manager, tmp_path):
    workspace = manager.provision()

    assert workspace.root.parent == tmp_path / "compile"
    assert workspace.root.name == workspace.id
    assert workspace.build_dir == workspace.root / "build"
    assert workspace.build_dir.is_dir()
    assert workspace.source == workspace.root / "main.qat"
    assert not workspace.source.exists()


def test_provision_never_reuses_a_directory(manager):
    first = manager.provision()
    second = manager.provision()

    assert first.id != second.id
    assert first.root != second.root


def test_identifier_collision_fails_without_touching_existing_tree(manager, monkeypatch):
    fixed = uuid.UUID(int=7)
    monkeypatch.setattr(workspaces_module.uuid, "uuid4", lambda: fixed)
    existing = manager.base / fixed.hex
    (existing / "build").mkdir(parents=True)
    marker = existing / "main.qat"
    marker.write_text("someone else's source", encoding="utf-8")

    with pytest.raises(WorkspaceCreateFailed):
        manager.provision()

    assert marker.read_text(encoding="utf-8") == "someone else's source"


def test_provision_fails_when_base_is_not_a_directory(tmp_path):
    base = tmp_path / "compile"
    base.write_text("occupied", encoding="utf-8")
    manager = WorkspaceManager(base)

    with pytest.raises(WorkspaceCreateFailed) as excinfo:
        manager.provision()

    assert excinfo.value.message == "Cannot create build directory"


def test_write_source_round_trips_text(manager):
    workspace = manager.provision()

    path = manager.write_source(workspace, "func main() {\n  say \"héllo\"\n}\n")

    assert path == workspace.source
    assert path.read_text(encoding="utf-8") == "func main() {\n  say \"héllo\"\n}\n"


def test_write_source_failure_is_reported(manager):
    workspace = manager.provision()
    workspace.source.mkdir()

    with pytest.raises(WorkspaceWriteFailed):
        manager.write_source(workspace, "func main() {}")


def test_destroy_is_idempotent(manager):
    workspace = manager.provision()

    manager.destroy(workspace)
    manager.destroy(workspace)

    assert not workspace.root.exists()


def test_context_manager_destroys_on_error(manager):
    with pytest.raises(RuntimeError):
        with manager.workspace() as workspace:
            manager.write_source(workspace, "func main() {}")
            raise RuntimeError("boom")

    assert not workspace.root.exists()
    assert list(manager.base.iterdir()) == []


def test_context_manager_tolerates_early_removal(manager):
    with manager.workspace() as workspace:
        manager.destroy(workspace)

    assert not workspace.root.exists()


def test_purge_removes_leftovers(manager):
    manager.provision()
    manager.provision()

    manager.purge()

    assert not manager.base.exists()
    manager.purge()


def test_write_source_rejects_unencodable_text(manager):
    workspace = manager.provision()

    with pytest.raises(WorkspaceWriteFailed):
        manager.write_source(workspace, "a\ud800b")


def test_relative_base_is_made_absolute(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    manager = WorkspaceManager(Path("compile"))

    workspace = manager.provision()

    assert manager.base == tmp_path / "compile"
    assert workspace.source.is_absolute()
    assert workspace.build_dir.is_absolute()

from pathlib import Path

import pytest
from pydantic import ValidationError

from coreason_anvil.errors import PathError
from coreason_anvil.workspace import (
    InstallerWorkspace,
    ProjectWorkspace,
    SandboxWorkspace,
    ensure_dir,
    ensure_file,
    remote_path,
    require_file,
)


def test_ensure_dir_creates_nested_directories(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b" / "c"
    assert ensure_dir(target) == target
    assert target.is_dir()


def test_ensure_dir_is_idempotent(tmp_path: Path) -> None:
    target = tmp_path / "dir"
    ensure_dir(target)
    (target / "keep.txt").write_text("contents")

    ensure_dir(target)

    assert target.is_dir()
    assert (target / "keep.txt").read_text() == "contents"


def test_ensure_dir_rejects_a_file(tmp_path: Path) -> None:
    target = tmp_path / "file"
    target.write_text("")

    with pytest.raises(PathError):
        ensure_dir(target)


def test_ensure_file_never_creates(tmp_path: Path) -> None:
    target = tmp_path / "absent.sh"
    assert ensure_file(target) == target
    assert not target.exists()


def test_ensure_file_rejects_a_directory(tmp_path: Path) -> None:
    with pytest.raises(PathError):
        ensure_file(tmp_path)


def test_require_file(tmp_path: Path) -> None:
    present = tmp_path / "present"
    present.write_text("")
    assert require_file(present) == present

    with pytest.raises(PathError, match="File not found"):
        require_file(tmp_path / "missing")

    with pytest.raises(PathError):
        require_file(tmp_path)


def test_project_workspace_layout(tmp_path: Path) -> None:
    ws = ProjectWorkspace(root=tmp_path / "proj")

    for directory in ws.directories():
        assert directory.is_dir()
    assert ws.hls == tmp_path / "proj" / "project" / "hls"
    assert ws.driver_calls == tmp_path / "proj" / "project" / "sw" / "driver-calls"
    assert ws.modified_transpiled == tmp_path / "proj" / "project" / "sw" / "modified-transpiled"
    assert ws.original == tmp_path / "proj" / "sources" / "original"
    assert ws.transpiled == tmp_path / "proj" / "sources" / "transpiled"


def test_project_workspace_reuses_existing_tree(tmp_path: Path) -> None:
    first = ProjectWorkspace(root=tmp_path)
    (first.hw / "design.bit").write_text("bits")

    second = ProjectWorkspace(root=tmp_path)

    assert (second.hw / "design.bit").read_text() == "bits"


def test_project_workspace_conflicting_file(tmp_path: Path) -> None:
    (tmp_path / "project").write_text("not a directory")

    with pytest.raises(PathError):
        ProjectWorkspace(root=tmp_path)


def test_project_workspace_is_frozen(tmp_path: Path) -> None:
    ws = ProjectWorkspace(root=tmp_path)
    with pytest.raises(ValidationError):
        ws.root = tmp_path / "other"  # type: ignore[misc]


def test_installer_workspace_layout(tmp_path: Path) -> None:
    ws = InstallerWorkspace(root=tmp_path)

    assert ws.provision.is_dir()
    assert ws.downloads.is_dir()
    assert ws.scripts.is_dir()
    assert ws.install_sireum_script.name == "install_kekinian.sh"
    assert not any(f.exists() for f in ws.files())
    assert ws.relative(ws.fix_dash_script) == "provision/scripts/fix_dash.sh"


def test_installer_workspace_rejects_directory_in_file_slot(tmp_path: Path) -> None:
    (tmp_path / "Vagrantfile").mkdir()

    with pytest.raises(PathError):
        InstallerWorkspace(root=tmp_path)


def test_sandbox_workspace_paths(tmp_path: Path) -> None:
    ws = SandboxWorkspace(local=tmp_path)

    assert ws.project == ("", "home", "vagrant", "project")
    assert remote_path(ws.hls) == "/home/vagrant/project/hls"
    assert remote_path(ws.os) == "/home/vagrant/project/os"
    # Nothing is created on the host.
    assert list(tmp_path.iterdir()) == []

# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_anvil

"""Directory layouts used by the pipeline.

Local workspaces are materialized when they are constructed: every declared
directory exists afterwards and every declared file slot is either absent or a
regular file. The sandbox workspace describes paths inside the VM as segment
tuples and performs no checks, since the guest filesystem is not visible from
the host.
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from coreason_anvil.errors import PathError

RemotePath = tuple[str, ...]


def ensure_dir(path: Path) -> Path:
    """Create ``path`` recursively, or assert that the existing entry is a directory."""
    if path.exists():
        if not path.is_dir():
            raise PathError(f"Expected a directory but found a file: {path}")
    else:
        path.mkdir(parents=True, exist_ok=True)
    return path


def ensure_file(path: Path) -> Path:
    """Assert that ``path``, if it exists, is a regular file. Never creates it."""
    if path.exists() and not path.is_file():
        raise PathError(f"Expected a file but found a directory: {path}")
    return path


def require_file(path: Path) -> Path:
    """Assert that ``path`` exists and is a regular file."""
    if not path.exists():
        raise PathError(f"File not found: {path}")
    return ensure_file(path)


def remote_path(segments: RemotePath) -> str:
    """Render remote path segments, e.g. ``("", "home", "vagrant")`` -> ``/home/vagrant``."""
    return "/".join(segments)


class ProjectWorkspace(BaseModel):
    """Build tree for one project."""

    model_config = ConfigDict(frozen=True)

    root: Path

    def model_post_init(self, __context: Any) -> None:
        for directory in self.directories():
            ensure_dir(directory)

    @property
    def downloads(self) -> Path:
        return self.root / "downloads"

    @property
    def sources(self) -> Path:
        return self.root / "sources"

    @property
    def original(self) -> Path:
        """Sources before transpiling."""
        return self.sources / "original"

    @property
    def transpiled(self) -> Path:
        """Transpiler output, needed by HLS to create drivers."""
        return self.sources / "transpiled"

    @property
    def project(self) -> Path:
        return self.root / "project"

    @property
    def hls(self) -> Path:
        return self.project / "hls"

    @property
    def hw(self) -> Path:
        return self.project / "hw"

    @property
    def sw(self) -> Path:
        return self.project / "sw"

    @property
    def driver_calls(self) -> Path:
        return self.sw / "driver-calls"

    @property
    def modified_transpiled(self) -> Path:
        return self.sw / "modified-transpiled"

    @property
    def os(self) -> Path:
        return self.project / "os"

    def directories(self) -> list[Path]:
        return [
            self.downloads,
            self.sources,
            self.original,
            self.transpiled,
            self.project,
            self.hls,
            self.hw,
            self.sw,
            self.driver_calls,
            self.modified_transpiled,
            self.os,
        ]


class InstallerWorkspace(BaseModel):
    """Staging tree for creating a sandbox: the Vagrantfile, provisioning scripts and installer copies."""

    model_config = ConfigDict(frozen=True)

    root: Path

    def model_post_init(self, __context: Any) -> None:
        for directory in (self.provision, self.downloads, self.scripts):
            ensure_dir(directory)
        for file in self.files():
            ensure_file(file)

    @property
    def provision(self) -> Path:
        return self.root / "provision"

    @property
    def downloads(self) -> Path:
        return self.root / "downloads"

    @property
    def scripts(self) -> Path:
        return self.provision / "scripts"

    @property
    def vagrantfile(self) -> Path:
        return self.root / "Vagrantfile"

    @property
    def fix_dash_script(self) -> Path:
        return self.scripts / "fix_dash.sh"

    @property
    def install_dependencies_script(self) -> Path:
        return self.scripts / "install_dependencies.sh"

    @property
    def install_petalinux_script(self) -> Path:
        return self.scripts / "install_petalinux.sh"

    @property
    def install_vivado_script(self) -> Path:
        return self.scripts / "install_vivado.sh"

    @property
    def install_sireum_script(self) -> Path:
        return self.scripts / "install_kekinian.sh"

    def files(self) -> list[Path]:
        return [
            self.vagrantfile,
            self.fix_dash_script,
            self.install_dependencies_script,
            self.install_petalinux_script,
            self.install_vivado_script,
            self.install_sireum_script,
        ]

    def relative(self, path: Path) -> str:
        """Path relative to the workspace root, in the POSIX form the Vagrantfile expects."""
        return path.relative_to(self.root).as_posix()


class SandboxWorkspace(BaseModel):
    """Layout of an existing sandbox.

    ``local`` is the host directory holding the sandbox's Vagrantfile. Every
    other location lives inside the VM and is expressed as path segments.
    """

    model_config = ConfigDict(frozen=True)

    local: Path

    root: RemotePath = ("", "home", "vagrant")

    @property
    def project(self) -> RemotePath:
        return self.root + ("project",)

    @property
    def hls(self) -> RemotePath:
        return self.project + ("hls",)

    @property
    def hw(self) -> RemotePath:
        return self.project + ("hw",)

    @property
    def sw(self) -> RemotePath:
        return self.project + ("sw",)

    @property
    def os(self) -> RemotePath:
        return self.project + ("os",)

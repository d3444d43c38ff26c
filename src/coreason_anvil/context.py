# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_anvil

"""Immutable runtime contexts.

A run is configured by combining independent facets rather than by
specializing a shared base::

    CompileContext = ToolchainContext * HardwareContext * ExecutionContext
      ExecutionContext = ProjectContext * (SandboxContext | None) * {CompileStage}
    SandboxInstallationContext = SSHCredentials * InstallerWorkspace * InstallerPayload
                                 * SandboxSizing * PetalinuxToolchain
                                 * XilinxUnifiedToolchain * SireumDistribution

Every model is frozen. ``ContextFactory`` in ``coreason_anvil.factory``
assembles them from CLI inputs and configuration.
"""

import itertools
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from coreason_anvil.errors import ConfigurationExhaustionError
from coreason_anvil.models import CompileStage
from coreason_anvil.workspace import (
    InstallerWorkspace,
    ProjectWorkspace,
    RemotePath,
    SandboxWorkspace,
    remote_path,
)

FROZEN = ConfigDict(frozen=True)

# (install sireum?, install petalinux?, install xilinx?) -> disk size.
# Rough estimates: the Xilinx installer is huge, Petalinux needs room for its
# sstate cache, Sireum alone fits in the base size.
DISK_SIZE_GB: dict[tuple[bool, bool, bool], int] = {
    (False, False, False): 64,
    (False, False, True): 128,
    (False, True, False): 128,
    (False, True, True): 256,
    (True, False, False): 64,
    (True, False, True): 128,
    (True, True, False): 128,
    (True, True, True): 256,
}

_ALL_COMBINATIONS = set(itertools.product((False, True), repeat=3))
if set(DISK_SIZE_GB) != _ALL_COMBINATIONS:  # pragma: no cover
    raise ConfigurationExhaustionError(
        "Disk size table does not cover every installer combination.",
        context={"missing": str(sorted(_ALL_COMBINATIONS - set(DISK_SIZE_GB)))},
    )


def disk_size(install_sireum: bool, install_petalinux: bool, install_xilinx: bool) -> str:
    """Disk size for a sandbox, e.g. ``disk_size(False, False, False) == "64GB"``."""
    key = (bool(install_sireum), bool(install_petalinux), bool(install_xilinx))
    if key not in DISK_SIZE_GB:
        raise ConfigurationExhaustionError(f"No disk size defined for installer combination {key}")
    return f"{DISK_SIZE_GB[key]}GB"


def default_graphics_controller() -> str:
    if sys.platform.startswith("win"):
        return "vmsvga"
    return "VBoxSVGA"


# ---------------------------------------------------------------------------
# Sandbox facets
# ---------------------------------------------------------------------------


class SSHCredentials(BaseModel):
    """Connection convention shared by every sandbox. The password is not a secret."""

    model_config = FROZEN

    port: str = "2222"
    hostname: str = "anvil"
    username: str = "vagrant"
    password: str = "vagrant"


class SandboxSizing(BaseModel):
    """VirtualBox resources for the sandbox VM."""

    model_config = FROZEN

    vm_name: str = "anvil"
    num_cpus: int = 4
    memory_mb: int = 8192
    vram_mb: int = 64
    enable_gui: bool = True
    graphics_controller: str = Field(default_factory=default_graphics_controller)


class InstallerPayload(BaseModel):
    """Which optional toolchains are installed into the sandbox."""

    model_config = FROZEN

    install_sireum: bool = True
    petalinux_installer_path: Path | None = None
    xilinx_unified_path: Path | None = None

    @property
    def install_petalinux(self) -> bool:
        return self.petalinux_installer_path is not None

    @property
    def install_xilinx(self) -> bool:
        return self.xilinx_unified_path is not None

    @property
    def bill_of_materials(self) -> tuple[bool, bool, bool]:
        """(sireum?, petalinux?, xilinx?)"""
        return (self.install_sireum, self.install_petalinux, self.install_xilinx)


class PetalinuxToolchain(BaseModel):
    """Petalinux v2020.1 installer conventions."""

    model_config = FROZEN

    version: str = "2020.1"
    platform: str = "arm"
    target_dir: str = "/opt/pkg/petalinux"
    # Relative to the installation folder.
    source_script: RemotePath = ("settings.sh",)
    # UG1144 (v2020.1), Table 2: Packages and Linux Workstation Environments.
    dependencies: tuple[str, ...] = (
        "iproute2",
        "gcc",
        "g++",
        "net-tools",
        "libncurses5-dev",
        "zlib1g:i386",
        "libssl-dev",
        "flex",
        "bison",
        "libselinux1",
        "xterm",
        "autoconf",
        "libtool",
        "texinfo",
        "zlib1g-dev",
        "gcc-multilib",
        "build-essential",
        "screen",
        "pax",
        "gawk",
        "python3",
        "python3-pexpect",
        "python3-pip",
        "python3-git",
        "python3-jinja2",
        "xz-utils",
        "debianutils",
        "iputils-ping",
        "libegl1-mesa",
        "libsdl1.2-dev",
        "pylint3",
        "cpio",
    )


class XilinxUnifiedToolchain(BaseModel):
    """Vivado / Vivado HLS 2020.1 (Xilinx Unified installer) conventions."""

    model_config = FROZEN

    version: str = "2020.1"
    target_dir: str = "/opt/pkg/vivado"
    source_script: RemotePath = ("Vivado", "2020.1", "settings64.sh")
    edition: str = "Vivado HL WebPACK"
    product: str = "Vivado"
    agreements: tuple[str, ...] = ("XilinxEULA", "3rdPartyEULA", "WebTalkTerms")
    archive_extension: str = ".tar.gz"


class SireumDistribution(BaseModel):
    model_config = FROZEN

    repository: str = "https://github.com/sireum/kekinian"
    target_dir: str = "/opt/pkg/sireum"


class SandboxContext(BaseModel):
    """An existing sandbox that stage commands may be delegated to."""

    model_config = FROZEN

    workspace: SandboxWorkspace
    ssh: SSHCredentials = Field(default_factory=SSHCredentials)

    def remote_location(self, segments: RemotePath) -> str:
        """scp address of a guest path, e.g. ``vagrant@anvil:/home/vagrant/project``."""
        return f"{self.ssh.username}@{self.ssh.hostname}:{remote_path(segments)}"


class SandboxInstallationContext(BaseModel):
    """Everything needed to generate and boot a new sandbox."""

    model_config = FROZEN

    workspace: InstallerWorkspace
    payload: InstallerPayload = Field(default_factory=InstallerPayload)
    ssh: SSHCredentials = Field(default_factory=SSHCredentials)
    sizing: SandboxSizing = Field(default_factory=SandboxSizing)
    petalinux: PetalinuxToolchain = Field(default_factory=PetalinuxToolchain)
    xilinx: XilinxUnifiedToolchain = Field(default_factory=XilinxUnifiedToolchain)
    sireum: SireumDistribution = Field(default_factory=SireumDistribution)

    def disk_size(self) -> str:
        return disk_size(*self.payload.bill_of_materials)


# ---------------------------------------------------------------------------
# Compile facets
# ---------------------------------------------------------------------------


class HardwareContext(BaseModel):
    """Constants that vary by target hardware."""

    model_config = FROZEN

    part_number: str
    bus: str = "AXILiteS"


class ZedBoardHardwareContext(HardwareContext):
    """Zynq-7000 SoC on the ZedBoard."""

    part_number: str = "xc7z020clg484-1"


class ProjectContext(BaseModel):
    """Names and settings that vary between projects but not between stages."""

    model_config = FROZEN

    project_workspace: ProjectWorkspace
    apps: tuple[str, ...] = ()
    transpiler_args: tuple[str, ...] = ()
    top_function: str
    hls_solution: str
    vivado_project: str
    vivado_design: str
    hls_sources: str


class SimpleProjectContext(ProjectContext):
    """Project named after the single method being accelerated."""

    simple_method_name: str
    hls_solution: str = "generatedSolution"
    vivado_project: str = "generatedProject"
    vivado_design: str = "generatedDesign"

    @model_validator(mode="before")
    @classmethod
    def _derive_names(cls, data: Any) -> Any:
        if isinstance(data, dict) and "simple_method_name" in data:
            name = data["simple_method_name"]
            data = {"top_function": name, "hls_sources": name, **data}
        return data


class ExecutionContext(BaseModel):
    """Values that vary per invocation: the project, the requested stages and an optional sandbox."""

    model_config = FROZEN

    project: ProjectContext
    sandbox: SandboxContext | None = None
    stages: frozenset[CompileStage] = frozenset()

    @property
    def is_sandboxed(self) -> bool:
        return self.sandbox is not None

    def ordered_stages(self) -> list[CompileStage]:
        """Requested stages in the order they must run: Hls, Hw, Sw, Os."""
        return CompileStage.ordered(self.stages)


class ToolchainContext(BaseModel, ABC):
    """Conventions of a particular tool version.

    Methods take the whole compile context so that other tool versions are free
    to derive names from anything in it.
    """

    model_config = FROZEN

    @abstractmethod
    def driver_name(self, context: "CompileContext") -> str: ...

    @abstractmethod
    def driver_base_file_name(self, context: "CompileContext") -> str: ...

    @abstractmethod
    def versioned_driver_name(self, context: "CompileContext") -> str: ...

    @abstractmethod
    def hls_driver_impl_directory(self, context: "CompileContext") -> Path: ...


class DefaultToolchainContext(ToolchainContext):
    """Vivado Design Suite v2020.1 and Petalinux v2020.1."""

    def driver_name(self, context: "CompileContext") -> str:
        return context.execution.project.hls_sources

    def driver_base_file_name(self, context: "CompileContext") -> str:
        return self.driver_name(context).lower()

    def versioned_driver_name(self, context: "CompileContext") -> str:
        return f"{self.driver_name(context)}_v1_0"

    def hls_driver_impl_directory(self, context: "CompileContext") -> Path:
        project = context.execution.project
        return (
            project.project_workspace.hls
            / project.hls_solution
            / "impl"
            / "misc"
            / "drivers"
            / self.versioned_driver_name(context)
            / "src"
        )


class CompileContext(BaseModel):
    model_config = FROZEN

    toolchain: ToolchainContext
    hardware: HardwareContext
    execution: ExecutionContext

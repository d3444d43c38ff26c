# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_anvil

import shutil
from enum import Enum
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, ConfigDict

from coreason_anvil.config import AnvilConfig
from coreason_anvil.context import SandboxInstallationContext
from coreason_anvil.models import ProcessResult
from coreason_anvil.process import run_process
from coreason_anvil.provisioning.templates import (
    PetalinuxScriptParameters,
    SireumScriptParameters,
    VagrantfileParameters,
    VivadoScriptParameters,
    render_dependencies_script,
    render_fix_dash_script,
    render_petalinux_script,
    render_sireum_script,
    render_vagrantfile,
    render_vivado_script,
)
from coreason_anvil.workspace import remote_path


class ScriptKind(str, Enum):
    """Provisioning slots. Declaration order is the order the VM runs them in."""

    FIX_DASH = "fix_dash"
    DEPENDENCIES = "dependencies"
    PETALINUX = "petalinux"
    VIVADO = "vivado"
    SIREUM = "sireum"


class ProvisioningScript(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ScriptKind
    path: Path
    body: str


class ProvisioningArtifacts(BaseModel):
    """Files written by one generation pass.

    Attributes:
        vagrantfile: Path of the VM descriptor.
        scripts: Written scripts, in provisioning order.
        staged_installers: Installer payloads copied into the downloads folder.
    """

    vagrantfile: Path
    scripts: list[Path]
    staged_installers: list[Path]


class ProvisioningGenerator:
    """
    Generates the sandbox Vagrantfile and provisioning scripts for an installation context.
    """

    # Guest mount point of the installer workspace root.
    SYNCED_FOLDER = "/vagrant"

    def __init__(self, context: SandboxInstallationContext, config: AnvilConfig | None = None):
        self.context = context
        self.config = config or AnvilConfig()
        self.workspace = context.workspace

    @property
    def shared_downloads(self) -> str:
        """Guest path of the installer workspace's downloads folder."""
        return f"{self.SYNCED_FOLDER}/{self.workspace.relative(self.workspace.downloads)}"

    @property
    def guest_downloads(self) -> str:
        return f"/home/{self.context.ssh.username}/Downloads"

    def script_plan(self) -> list[ProvisioningScript]:
        """Scripts to emit, in provisioning order. Absent installers are skipped."""
        context = self.context
        payload = context.payload
        workspace = self.workspace

        plan = [
            ProvisioningScript(
                kind=ScriptKind.FIX_DASH,
                path=workspace.fix_dash_script,
                body=render_fix_dash_script(),
            ),
            ProvisioningScript(
                kind=ScriptKind.DEPENDENCIES,
                path=workspace.install_dependencies_script,
                body=render_dependencies_script(context.petalinux.dependencies),
            ),
        ]

        if payload.petalinux_installer_path is not None:
            params = PetalinuxScriptParameters(
                username=context.ssh.username,
                installer_name=payload.petalinux_installer_path.name,
                shared_downloads=self.shared_downloads,
                guest_downloads=self.guest_downloads,
                target_dir=context.petalinux.target_dir,
                platform=context.petalinux.platform,
                source_script=remote_path(context.petalinux.source_script),
            )
            plan.append(
                ProvisioningScript(
                    kind=ScriptKind.PETALINUX,
                    path=workspace.install_petalinux_script,
                    body=render_petalinux_script(params),
                )
            )

        if payload.xilinx_unified_path is not None:
            archive_name = payload.xilinx_unified_path.name
            params_vivado = VivadoScriptParameters(
                username=context.ssh.username,
                archive_name=archive_name,
                extracted_name=archive_name.removesuffix(context.xilinx.archive_extension),
                shared_downloads=self.shared_downloads,
                guest_downloads=self.guest_downloads,
                target_dir=context.xilinx.target_dir,
                edition=context.xilinx.edition,
                product=context.xilinx.product,
                agreements=context.xilinx.agreements,
                source_script=remote_path(context.xilinx.source_script),
            )
            plan.append(
                ProvisioningScript(
                    kind=ScriptKind.VIVADO,
                    path=workspace.install_vivado_script,
                    body=render_vivado_script(params_vivado),
                )
            )

        if payload.install_sireum:
            params_sireum = SireumScriptParameters(
                username=context.ssh.username,
                repository=context.sireum.repository,
                target_dir=context.sireum.target_dir,
            )
            plan.append(
                ProvisioningScript(
                    kind=ScriptKind.SIREUM,
                    path=workspace.install_sireum_script,
                    body=render_sireum_script(params_sireum),
                )
            )

        return plan

    def installers(self) -> list[Path]:
        """Supplied installer payloads, Petalinux before Xilinx."""
        payload = self.context.payload
        return [p for p in (payload.petalinux_installer_path, payload.xilinx_unified_path) if p is not None]

    def render_vagrantfile(self) -> str:
        context = self.context
        sizing = context.sizing
        downloads = self.workspace.downloads
        params = VagrantfileParameters(
            hostname=context.ssh.hostname,
            vm_name=sizing.vm_name,
            num_cpus=sizing.num_cpus,
            memory_mb=sizing.memory_mb,
            vram_mb=sizing.vram_mb,
            enable_gui=sizing.enable_gui,
            graphics_controller=sizing.graphics_controller,
            disk_size=context.disk_size(),
            username=context.ssh.username,
            password=context.ssh.password,
            required_installers=tuple(self.workspace.relative(downloads / p.name) for p in self.installers()),
            provision_scripts=tuple(self.workspace.relative(script.path) for script in self.script_plan()),
            synced_folder=("./", self.SYNCED_FOLDER),
        )
        return render_vagrantfile(params)

    def stage_installers(self) -> list[Path]:
        """Copy installer payloads into the downloads folder, replacing existing copies."""
        staged: list[Path] = []
        for installer in self.installers():
            destination = self.workspace.downloads / installer.name
            if installer.resolve() != destination.resolve():
                logger.info(f"Staging installer {installer} -> {destination}")
                shutil.copyfile(installer, destination)
            staged.append(destination)
        return staged

    def generate(self) -> ProvisioningArtifacts:
        """Write the Vagrantfile and provisioning scripts into the installer workspace.

        Nothing already written is rolled back if a later step fails.

        Returns:
            ProvisioningArtifacts: What was written.
        """
        workspace = self.workspace
        logger.info(
            f"Generating sandbox at {workspace.root} "
            f"(disk={self.context.disk_size()}, tools={self.context.payload.bill_of_materials})"
        )

        staged = self.stage_installers()

        workspace.vagrantfile.write_text(self.render_vagrantfile(), encoding="utf-8", newline="\n")

        written: list[Path] = []
        for script in self.script_plan():
            script.path.parent.mkdir(parents=True, exist_ok=True)
            script.path.write_text(script.body, encoding="utf-8", newline="\n")
            logger.debug(f"Wrote {script.kind.value} script to {script.path}")
            written.append(script.path)

        return ProvisioningArtifacts(vagrantfile=workspace.vagrantfile, scripts=written, staged_installers=staged)

    def install(self) -> ProcessResult:
        """Generate the sandbox files, then boot and provision the VM with ``vagrant up``.

        Raises:
            ProcessFailure: If ``vagrant up`` fails.
        """
        self.generate()
        logger.info("Booting and provisioning sandbox. This may take a few hours.")
        return run_process(
            [self.config.vagrant_executable, "up"],
            cwd=self.workspace.root,
            echo=self.config.console_passthrough,
        )

# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_anvil

from collections.abc import Iterable, Sequence
from pathlib import Path

from coreason_anvil.config import AnvilConfig
from coreason_anvil.context import (
    CompileContext,
    DefaultToolchainContext,
    ExecutionContext,
    HardwareContext,
    InstallerPayload,
    SandboxContext,
    SandboxInstallationContext,
    SandboxSizing,
    SimpleProjectContext,
    ToolchainContext,
    XilinxUnifiedToolchain,
    ZedBoardHardwareContext,
)
from coreason_anvil.errors import PathError
from coreason_anvil.models import CompileStage
from coreason_anvil.runtime import StageRuntime
from coreason_anvil.runtimes.local import LocalRuntime
from coreason_anvil.runtimes.vagrant import VagrantRuntime
from coreason_anvil.workspace import InstallerWorkspace, ProjectWorkspace, SandboxWorkspace, require_file


class ContextFactory:
    """
    Assembles immutable contexts from raw CLI inputs and configuration.
    """

    @staticmethod
    def sandbox_sizing(config: AnvilConfig) -> SandboxSizing:
        return SandboxSizing(
            num_cpus=config.vm_cpus,
            memory_mb=config.vm_memory_mb,
            vram_mb=config.vm_vram_mb,
            enable_gui=config.vm_gui,
        )

    @staticmethod
    def sandbox_context(sandbox_path: Path) -> SandboxContext:
        return SandboxContext(workspace=SandboxWorkspace(local=sandbox_path))

    @staticmethod
    def sandbox_installation_context(
        root: Path,
        install_sireum: bool = True,
        petalinux_installer_path: Path | None = None,
        xilinx_unified_path: Path | None = None,
        config: AnvilConfig | None = None,
    ) -> SandboxInstallationContext:
        """Build the context used to create a sandbox at ``root``.

        Installer payloads are checked before the workspace is materialized so
        that a typo in a path fails without touching the filesystem.

        Raises:
            PathError: If an installer path is missing or not a regular file, or
                the Xilinx archive does not have the expected extension.
        """
        config = config or AnvilConfig()
        for installer in (petalinux_installer_path, xilinx_unified_path):
            if installer is not None:
                require_file(installer)

        extension = XilinxUnifiedToolchain().archive_extension
        if xilinx_unified_path is not None and not xilinx_unified_path.name.endswith(extension):
            raise PathError(
                f"Expected a {extension} archive: {xilinx_unified_path}",
                hint="Pass the Xilinx Unified installer tarball as downloaded.",
            )

        return SandboxInstallationContext(
            workspace=InstallerWorkspace(root=root),
            payload=InstallerPayload(
                install_sireum=install_sireum,
                petalinux_installer_path=petalinux_installer_path,
                xilinx_unified_path=xilinx_unified_path,
            ),
            sizing=ContextFactory.sandbox_sizing(config),
        )

    @staticmethod
    def compile_context(
        project_root: Path,
        method_name: str,
        stages: Iterable[CompileStage],
        apps: Sequence[str] = (),
        transpiler_args: Sequence[str] = (),
        sandbox_path: Path | None = None,
        toolchain: ToolchainContext | None = None,
        hardware: HardwareContext | None = None,
    ) -> CompileContext:
        """Build the context for one compile run.

        Defaults to the Vivado/Petalinux 2020.1 toolchain and the ZedBoard.
        """
        project = SimpleProjectContext(
            project_workspace=ProjectWorkspace(root=project_root),
            simple_method_name=method_name,
            apps=tuple(apps),
            transpiler_args=tuple(transpiler_args),
        )
        sandbox = ContextFactory.sandbox_context(sandbox_path) if sandbox_path is not None else None
        return CompileContext(
            toolchain=toolchain or DefaultToolchainContext(),
            hardware=hardware or ZedBoardHardwareContext(),
            execution=ExecutionContext(project=project, sandbox=sandbox, stages=frozenset(stages)),
        )


def get_runtime(execution: ExecutionContext, config: AnvilConfig | None = None) -> StageRuntime:
    """
    Returns the runtime stage commands should use: the sandbox when one is attached, else the host.
    """
    config = config or AnvilConfig()
    if execution.sandbox is not None:
        return VagrantRuntime(execution.sandbox, config)
    return LocalRuntime(execution.project.project_workspace.root, echo=config.console_passthrough)

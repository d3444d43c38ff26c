# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_anvil

from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from coreason_anvil.config import AnvilConfig
from coreason_anvil.context import SandboxContext
from coreason_anvil.errors import ProcessFailure
from coreason_anvil.models import ProcessResult, ScpDirection
from coreason_anvil.process import run_process
from coreason_anvil.runtime import StageRuntime
from coreason_anvil.workspace import RemotePath, remote_path


class VagrantRuntime(StageRuntime):
    """
    Delegates stage commands to an already provisioned Vagrant sandbox.

    Every command is a blocking ``vagrant``/``scp`` invocation run from the
    sandbox's local directory. A nonzero exit raises ``ProcessFailure``; there
    are no retries.
    """

    def __init__(self, context: SandboxContext, config: AnvilConfig | None = None):
        self.context = context
        self.config = config or AnvilConfig()
        self.workspace = context.workspace

    def _local(self, command: Sequence[str]) -> ProcessResult:
        return run_process(command, cwd=self.workspace.local, echo=self.config.console_passthrough)

    def start(self) -> None:
        """
        Boot the VM without provisioning. Vagrant leaves a running VM untouched.
        """
        logger.info(f"Starting sandbox at {self.workspace.local}")
        self._local([self.config.vagrant_executable, "up", "--no-provision"])

    def ssh(self, command: Sequence[str]) -> ProcessResult:
        """Run a command inside the sandbox.

        The arguments are joined with single spaces and handed to ``vagrant ssh
        -c`` as one argument, so operators such as ``&&`` are interpreted by the
        guest shell. Passing the joined string as a single argv element takes
        the place of shell-quoting it, since no host shell ever splits it.

        Args:
            command: The argument vector to run remotely.

        Returns:
            ProcessResult: The result of the ``vagrant ssh`` invocation.

        Raises:
            ProcessFailure: If the remote command exits with a nonzero status.
        """
        remote_command = " ".join(command)
        logger.info(f"Executing in sandbox: {remote_command}")
        return self._local([self.config.vagrant_executable, "ssh", "-c", remote_command])

    def execute(self, command: Sequence[str]) -> ProcessResult:
        return self.ssh(command)

    def scp(self, direction: ScpDirection, local_path: Path, remote: RemotePath) -> ProcessResult:
        """Copy between the host and the sandbox.

        Directories are copied recursively. A failed recursive copy is not
        rolled back and may leave partial content at the destination.

        Args:
            direction: Which side is the source.
            local_path: The host path.
            remote: The guest path as segments.

        Returns:
            ProcessResult: The result of the ``scp`` invocation.
        """
        ssh = self.context.ssh
        local = str(local_path)
        location = self.context.remote_location(remote)

        command = [self.config.scp_executable]
        if local_path.is_dir():
            command.append("-r")
        command.extend(["-P", ssh.port])
        if direction == ScpDirection.LOCAL_TO_SANDBOX:
            command.extend([local, location])
        else:
            command.extend([location, local])

        logger.info(f"Copying {command[-2]} to {command[-1]}")
        try:
            return self._local(command)
        except ProcessFailure as e:
            logger.error(f"Transfer failed ({direction.value}): {e}")
            raise

    def push(self, local_path: Path, remote: RemotePath) -> ProcessResult:
        """
        Upload a file or directory into the sandbox.
        """
        return self.scp(ScpDirection.LOCAL_TO_SANDBOX, local_path, remote)

    def pull(self, local_path: Path, remote: RemotePath) -> ProcessResult:
        """
        Download a file or directory from the sandbox.
        """
        return self.scp(ScpDirection.SANDBOX_TO_LOCAL, local_path, remote)

    def clear_project_dir(self, remote: RemotePath) -> ProcessResult:
        """Leave an empty directory at ``remote``, whatever was there before.

        Runs ``mkdir -p P && rm -rf P && mkdir -p P`` in a single remote
        invocation. The first ``mkdir`` makes the path exist so that removal
        never fails on first use, and the last one recreates it empty.
        """
        path = remote_path(remote)
        mkdir = ["mkdir", "-p", path]
        rm = ["rm", "-rf", path]
        return self.ssh([*mkdir, "&&", *rm, "&&", *mkdir])

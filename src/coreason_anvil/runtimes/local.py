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

from coreason_anvil.models import ProcessResult
from coreason_anvil.process import run_process
from coreason_anvil.runtime import StageRuntime


class LocalRuntime(StageRuntime):
    """
    Runs stage commands directly on the host, from the project workspace root.
    """

    def __init__(self, root: Path, echo: bool = True):
        self.root = root
        self.echo = echo

    def start(self) -> None:
        """
        Nothing to boot on the host.
        """
        logger.debug(f"Using local runtime at {self.root}")

    def execute(self, command: Sequence[str]) -> ProcessResult:
        """
        Run the command on the host.
        """
        logger.info(f"Executing locally: {' '.join(command)}")
        return run_process(command, cwd=self.root, echo=self.echo)

# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_anvil

from abc import ABC, abstractmethod
from collections.abc import Sequence

from coreason_anvil.models import ProcessResult


class StageRuntime(ABC):
    """
    Abstract base class for where stage commands run (local host or sandbox VM).
    Follows the Strategy Pattern.
    """

    @abstractmethod
    def start(self) -> None:
        """Make the environment ready to accept commands.

        Must be idempotent: calling it on an environment that is already
        running does nothing.

        Raises:
            ProcessFailure: If the environment fails to start.
        """
        pass  # pragma: no cover

    @abstractmethod
    def execute(self, command: Sequence[str]) -> ProcessResult:
        """Run a command and wait for it to finish.

        Args:
            command: The argument vector to execute.

        Returns:
            ProcessResult: The exit code and console output.

        Raises:
            ProcessFailure: If the command exits with a nonzero status.
        """
        pass  # pragma: no cover

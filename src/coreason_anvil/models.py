# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_anvil

from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel, ConfigDict


class CompileStage(str, Enum):
    """A phase of the build pipeline.

    Declaration order is the canonical execution order: Hls, Hw, Sw, Os.
    """

    HLS = "hls"
    HW = "hw"
    SW = "sw"
    OS = "os"

    @classmethod
    def ordered(cls, stages: Iterable["CompileStage"]) -> list["CompileStage"]:
        """Return the given stages in canonical order, dropping duplicates."""
        requested = set(stages)
        return [stage for stage in cls if stage in requested]

    @classmethod
    def parse(cls, value: str) -> frozenset["CompileStage"]:
        """Parse a comma separated stage list such as ``"hls,hw"`` or ``"all"``.

        Raises:
            ValueError: If a name is not a known stage.
        """
        stages: set[CompileStage] = set()
        for name in value.split(","):
            name = name.strip().lower()
            if not name:
                continue
            if name == "all":
                stages.update(cls)
            else:
                stages.add(cls(name))
        return frozenset(stages)


class ScpDirection(str, Enum):
    LOCAL_TO_SANDBOX = "local_to_sandbox"
    SANDBOX_TO_LOCAL = "sandbox_to_local"


class ProcessResult(BaseModel):
    """Represents the outcome of one external process invocation.

    Attributes:
        command: The argument vector that was executed.
        cwd: The working directory the command ran in, if any.
        exit_code: The exit code of the process (0 for success).
        stdout: Console output captured from the process (stdout and stderr interleaved).
        execution_duration: The duration of the invocation in seconds.
    """

    model_config = ConfigDict(frozen=True)

    command: list[str]
    cwd: str | None = None
    exit_code: int
    stdout: str = ""
    execution_duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

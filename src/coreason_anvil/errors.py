# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_anvil

"""Error types raised by the build pipeline and sandbox tooling."""

from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from coreason_anvil.models import ProcessResult


class AnvilError(Exception):
    """Base error carrying an optional hint and diagnostic context."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        for key, value in self.context.items():
            if value:
                parts.append(f"  {key}: {value}")
        return "\n".join(parts)


class PathError(AnvilError):
    """A path exists but is the wrong kind of entry (file vs directory), or a required file is missing."""


class ProcessFailure(AnvilError):
    """An external tool (local shell, vagrant, ssh, scp) exited with a nonzero status."""

    def __init__(self, result: "ProcessResult", *, hint: str | None = None) -> None:
        super().__init__(
            f"Command exited with status {result.exit_code}: {' '.join(result.command)}",
            hint=hint,
            context={"cwd": result.cwd or "", "exit_code": str(result.exit_code)},
        )
        self.result = result

    @property
    def exit_code(self) -> int:
        return self.result.exit_code


class ConfigurationExhaustionError(AnvilError):
    """An installer combination is not covered by the disk size table."""


class UsageError(AnvilError):
    """Command line input that is well formed for argparse but still unusable."""


__all__ = [
    "AnvilError",
    "ConfigurationExhaustionError",
    "PathError",
    "ProcessFailure",
    "UsageError",
]

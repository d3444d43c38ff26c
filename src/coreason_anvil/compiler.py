# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_anvil

from typing import Protocol

from loguru import logger

from coreason_anvil.context import CompileContext
from coreason_anvil.runtime import StageRuntime

COMPILER_NOT_LINKED = -1


class Compiler(Protocol):
    """Driver that turns a source method into hardware and software artifacts.

    Implementations must run ``context.execution.ordered_stages()`` in that
    order, issuing stage commands through ``runtime``.
    """

    def compile(self, context: CompileContext, target: str, runtime: StageRuntime) -> int:
        """Run the requested stages and return a status code (0 for success)."""
        ...


class UnlinkedCompiler:
    """
    Placeholder used when no compiler backend is installed. Reports the plan and does nothing.
    """

    def compile(self, context: CompileContext, target: str, runtime: StageRuntime) -> int:
        execution = context.execution
        stages = ", ".join(stage.value for stage in execution.ordered_stages()) or "none"
        where = "sandbox" if execution.is_sandboxed else "host"
        logger.info(f"Compile plan for {target}: stages [{stages}] on {where} ({type(runtime).__name__})")
        logger.warning("No compiler backend is linked; nothing was compiled.")
        return COMPILER_NOT_LINKED

# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_anvil

"""
coreason-anvil
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .config import AnvilConfig
from .context import CompileContext, ExecutionContext, SandboxContext, SandboxInstallationContext
from .errors import AnvilError, ConfigurationExhaustionError, PathError, ProcessFailure
from .factory import ContextFactory, get_runtime
from .models import CompileStage, ProcessResult
from .runtime import StageRuntime
from .runtimes.local import LocalRuntime
from .runtimes.vagrant import VagrantRuntime

__all__ = [
    "AnvilConfig",
    "AnvilError",
    "CompileContext",
    "CompileStage",
    "ConfigurationExhaustionError",
    "ContextFactory",
    "ExecutionContext",
    "LocalRuntime",
    "PathError",
    "ProcessFailure",
    "ProcessResult",
    "SandboxContext",
    "SandboxInstallationContext",
    "StageRuntime",
    "VagrantRuntime",
    "get_runtime",
]

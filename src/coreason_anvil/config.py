# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_anvil

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class AnvilConfig(BaseSettings):
    """
    Configuration for the Anvil tooling, read from COREASON_ANVIL_* environment variables.
    """

    # External tools
    vagrant_executable: str = "vagrant"
    scp_executable: str = "scp"
    console_passthrough: bool = True

    # Logging
    log_level: Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_dir: Path = Path("logs")

    # Sandbox sizing (disk size is derived from the installed tools)
    vm_cpus: int = 4
    vm_memory_mb: int = 8192
    vm_vram_mb: int = 64
    vm_gui: bool = True

    model_config = SettingsConfigDict(
        env_prefix="COREASON_ANVIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_anvil

import sys

from loguru import logger

from coreason_anvil.config import AnvilConfig

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"


def setup_logger(config: AnvilConfig | None = None) -> None:
    """Configure two sinks: a readable stderr sink and a JSON file sink under ``log_dir``."""
    config = config or AnvilConfig()
    config.log_dir.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(sys.stderr, level=config.log_level, format=CONSOLE_FORMAT)
    logger.add(
        config.log_dir / "app.log",
        level=config.log_level,
        serialize=True,
        rotation="10 MB",
        retention=5,
        enqueue=True,
    )


__all__ = ["logger", "setup_logger"]

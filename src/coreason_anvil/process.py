# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_anvil

"""Blocking execution of external tools with console passthrough."""

import os
import subprocess
import sys
import time
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from coreason_anvil.errors import PathError, ProcessFailure
from coreason_anvil.models import ProcessResult

# Exit status reported when the executable itself cannot be launched.
COMMAND_NOT_FOUND = 127


def platform_prefix() -> list[str]:
    """Windows hosts resolve tools such as ``vagrant.bat`` through ``cmd /c``."""
    if os.name == "nt":
        return ["cmd", "/c"]
    return []


def _echo(chunk: bytes) -> None:
    """Write raw tool output to the console without re-encoding it."""
    sys.stdout.flush()
    sys.stdout.buffer.write(chunk)
    sys.stdout.buffer.flush()


def run_process(
    command: Sequence[str],
    cwd: Path | None = None,
    *,
    check: bool = True,
    echo: bool = True,
) -> ProcessResult:
    """Run a command to completion and return its exit code and console output.

    Output is streamed line by line, as raw bytes, to ``sys.stdout`` while it is
    captured, so the operator sees the tool exactly as if it had been run by
    hand. The captured copy is decoded as UTF-8 with replacement characters.

    Args:
        command: The argument vector. It is never passed through a shell.
        cwd: Working directory for the command.
        check: Raise ``ProcessFailure`` on a nonzero exit code.
        echo: Mirror the tool's output on the console.

    Returns:
        ProcessResult: The exit code and captured output.

    Raises:
        ProcessFailure: If ``check`` is set and the command fails, or if the
            executable cannot be found.
        PathError: If ``cwd`` is given but is not an existing directory.
    """
    argv = [*platform_prefix(), *command]
    workdir = str(cwd) if cwd is not None else None
    logger.debug(f"Running {' '.join(argv)} (cwd={workdir})")

    if cwd is not None and not cwd.is_dir():
        raise PathError(f"Working directory does not exist: {cwd}", context={"command": " ".join(argv)})

    start_time = time.time()
    captured: list[bytes] = []
    try:
        with subprocess.Popen(
            argv,
            cwd=workdir,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        ) as proc:
            assert proc.stdout is not None
            for line in proc.stdout:
                captured.append(line)
                if echo:
                    _echo(line)
            exit_code = proc.wait()
    except FileNotFoundError as e:
        result = ProcessResult(
            command=argv,
            cwd=workdir,
            exit_code=COMMAND_NOT_FOUND,
            stdout=str(e),
            execution_duration=time.time() - start_time,
        )
        logger.error(f"Executable not found: {argv[0]}")
        raise ProcessFailure(result, hint=f"Ensure `{argv[0]}` is installed and on PATH.") from e

    result = ProcessResult(
        command=argv,
        cwd=workdir,
        exit_code=exit_code,
        stdout=b"".join(captured).decode("utf-8", errors="replace"),
        execution_duration=time.time() - start_time,
    )

    if check and exit_code != 0:
        logger.error(f"Command failed with exit code {exit_code}: {' '.join(argv)}")
        raise ProcessFailure(result)

    return result

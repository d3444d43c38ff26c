# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_anvil

"""Command line entry point: ``anvil compile`` and ``anvil sandbox``."""

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from coreason_anvil.compiler import Compiler, UnlinkedCompiler
from coreason_anvil.config import AnvilConfig
from coreason_anvil.errors import PathError, ProcessFailure, UsageError
from coreason_anvil.factory import ContextFactory, get_runtime
from coreason_anvil.models import CompileStage
from coreason_anvil.provisioning import ProvisioningGenerator
from coreason_anvil.utils.logger import setup_logger
from coreason_anvil.workspace import require_file

OUTPUT_FLAG = "--output"
DEFAULT_PROJECT_DIR = "anvil"


def _stage_set(value: str) -> frozenset[CompileStage]:
    try:
        return CompileStage.parse(value)
    except ValueError as e:
        choices = ",".join(["all", *(stage.value for stage in CompileStage)])
        raise argparse.ArgumentTypeError(f"invalid stage list {value!r} (choose from {choices})") from e


def read_transpiler_args(path: Path) -> tuple[Path | None, list[str]]:
    """Split a transpiler argument file into the ``--output`` value and the forwarded arguments.

    The file holds one flag or value per line. Blank lines are ignored.

    Raises:
        PathError: If the file is missing or is not a regular file.
        UsageError: If ``--output`` is the last line and has no value.
    """
    require_file(path)
    lines = [line.strip() for line in path.read_text(encoding="utf-8").splitlines()]
    lines = [line for line in lines if line]

    output: Path | None = None
    forwarded: list[str] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line == OUTPUT_FLAG:
            if i + 1 >= len(lines):
                raise UsageError(f"{OUTPUT_FLAG} in {path} has no value")
            output = Path(lines[i + 1])
            i += 2
            continue
        if line.startswith(f"{OUTPUT_FLAG}="):
            output = Path(line.split("=", 1)[1])
        else:
            forwarded.append(line)
        i += 1
    return output, forwarded


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="anvil", description="Sireum Anvil")
    commands = parser.add_subparsers(dest="command", required=True)

    compile_cmd = commands.add_parser(
        "compile",
        help="Compile one or more stages",
        usage="anvil compile [options] [SOURCE ...] SOURCE#METHOD",
    )
    compile_cmd.add_argument(
        "--stage",
        type=_stage_set,
        default=CompileStage.parse("all"),
        help='Comma separated stages to run, from all,hls,hw,sw,os. "all" is a shortcut for "hls,hw,sw,os".',
    )
    compile_cmd.add_argument(
        "--transpiler-args-file",
        type=Path,
        default=None,
        help=(
            "File containing args to be forwarded to the transpiler, one flag or value per line. "
            f'The transpiler\'s "{OUTPUT_FLAG}" flag is intercepted and used to create the workspace.'
        ),
    )
    compile_cmd.add_argument(
        "--sandbox-path",
        type=Path,
        default=None,
        help='Optional path to a sandbox that execution will be delegated to. See "anvil sandbox --help".',
    )
    compile_cmd.add_argument(
        "sources",
        nargs="+",
        metavar="SOURCE",
        help="Source files; the last one names the method to accelerate as <file>#<method>.",
    )

    sandbox_cmd = commands.add_parser(
        "sandbox",
        help="Create a premade anvil execution environment.",
        description="Create a linux sandbox that may optionally be hooked into Anvil or used as a debugging workspace.",
    )
    sandbox_cmd.add_argument(
        "-s",
        "--exclude-sireum",
        action="store_true",
        help='Do not install Sireum, which enables sandboxing of the "hls" transpiler pass and "sw" stages.',
    )
    sandbox_cmd.add_argument(
        "-x",
        "--xilinx-unified-path",
        type=Path,
        default=None,
        help='Path to Xilinx_Unified_2020.1_0602_1208.tar.gz. Enables sandboxing of the "hls" and "hw" stages.',
    )
    sandbox_cmd.add_argument(
        "-p",
        "--petalinux-installer-path",
        type=Path,
        default=None,
        help='Path to petalinux-v2020.1-final-installer.run. Enables sandboxing of the "os" stage.',
    )
    sandbox_cmd.add_argument("output_path", type=Path, metavar="OUTPUT_PATH", help="Directory to create the sandbox in.")

    return parser


def run_compile(args: argparse.Namespace, config: AnvilConfig, compiler: Compiler) -> int:
    *sources, target = args.sources
    target_file, sep, method = target.rpartition("#")
    if not sep or not target_file or not method:
        raise UsageError(f"Expected <file>#<method> as the last source, got {target!r}")

    output: Path | None = None
    forwarded: list[str] = []
    if args.transpiler_args_file is not None:
        output, forwarded = read_transpiler_args(args.transpiler_args_file)
    if output is None:
        output = Path.cwd() / DEFAULT_PROJECT_DIR
        logger.warning(f"No {OUTPUT_FLAG} given to the transpiler; using {output}")

    context = ContextFactory.compile_context(
        project_root=output,
        method_name=method,
        stages=args.stage,
        apps=[*sources, target_file],
        transpiler_args=forwarded,
        sandbox_path=args.sandbox_path,
    )
    runtime = get_runtime(context.execution, config)
    return compiler.compile(context, target, runtime)


def run_sandbox(args: argparse.Namespace, config: AnvilConfig) -> int:
    context = ContextFactory.sandbox_installation_context(
        root=args.output_path,
        install_sireum=not args.exclude_sireum,
        petalinux_installer_path=args.petalinux_installer_path,
        xilinx_unified_path=args.xilinx_unified_path,
        config=config,
    )
    result = ProvisioningGenerator(context, config).install()
    logger.info(f"Sandbox ready at {args.output_path}")
    return result.exit_code


def main(argv: Sequence[str] | None = None, compiler: Compiler | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = AnvilConfig()
    setup_logger(config)

    try:
        if args.command == "compile":
            return run_compile(args, config, compiler or UnlinkedCompiler())
        return run_sandbox(args, config)
    except UsageError as e:
        parser.error(str(e))
    except PathError as e:
        logger.error(str(e))
        return 1
    except ProcessFailure as e:
        logger.error(str(e))
        return e.exit_code or 1
    return 1  # pragma: no cover


def run() -> None:
    """Entry point for the ``anvil`` console script."""
    sys.exit(main())


if __name__ == "__main__":  # pragma: no cover
    run()

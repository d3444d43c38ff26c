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
from typing import Generator
from unittest.mock import MagicMock, patch

import pytest

from coreason_anvil.compiler import COMPILER_NOT_LINKED
from coreason_anvil.context import CompileContext
from coreason_anvil.errors import PathError, ProcessFailure, UsageError
from coreason_anvil.main import build_parser, main, read_transpiler_args
from coreason_anvil.models import CompileStage, ProcessResult
from coreason_anvil.runtimes.local import LocalRuntime
from coreason_anvil.runtimes.vagrant import VagrantRuntime


@pytest.fixture
def compiler() -> MagicMock:
    mock = MagicMock()
    mock.compile.return_value = 0
    return mock


@pytest.fixture
def mock_vagrant_up() -> Generator[MagicMock, None, None]:
    with patch("coreason_anvil.provisioning.generator.run_process") as mock:
        mock.return_value = ProcessResult(command=["vagrant", "up"], exit_code=0)
        yield mock


def write_args(path: Path, *lines: str) -> Path:
    path.write_text("\n".join(lines) + "\n")
    return path


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def test_compile_defaults_to_all_stages() -> None:
    args = build_parser().parse_args(["compile", "app.slang#add"])

    assert args.command == "compile"
    assert args.stage == frozenset(CompileStage)
    assert args.sources == ["app.slang#add"]
    assert args.sandbox_path is None


def test_compile_stage_list() -> None:
    args = build_parser().parse_args(["compile", "--stage", "sw,hls", "a.slang", "b.slang#add"])

    assert args.stage == {CompileStage.SW, CompileStage.HLS}
    assert args.sources == ["a.slang", "b.slang#add"]


def test_compile_rejects_unknown_stage() -> None:
    with pytest.raises(SystemExit) as exc_info:
        build_parser().parse_args(["compile", "--stage", "synth", "app.slang#add"])

    assert exc_info.value.code == 2


def test_sandbox_flags() -> None:
    args = build_parser().parse_args(["sandbox", "-s", "-x", "x.tar.gz", "-p", "p.run", "out"])

    assert args.exclude_sireum is True
    assert args.xilinx_unified_path == Path("x.tar.gz")
    assert args.petalinux_installer_path == Path("p.run")
    assert args.output_path == Path("out")


def test_read_transpiler_args_intercepts_output(tmp_path: Path) -> None:
    args_file = write_args(tmp_path / "args.txt", "--verbose", "--output", "/work/out", "", "--bits", "32")

    output, forwarded = read_transpiler_args(args_file)

    assert output == Path("/work/out")
    assert forwarded == ["--verbose", "--bits", "32"]


def test_read_transpiler_args_equals_form(tmp_path: Path) -> None:
    output, forwarded = read_transpiler_args(write_args(tmp_path / "args.txt", "--output=/work/out", "--verbose"))

    assert output == Path("/work/out")
    assert forwarded == ["--verbose"]


def test_read_transpiler_args_without_output(tmp_path: Path) -> None:
    assert read_transpiler_args(write_args(tmp_path / "args.txt", "--verbose")) == (None, ["--verbose"])


def test_read_transpiler_args_dangling_output(tmp_path: Path) -> None:
    with pytest.raises(UsageError):
        read_transpiler_args(write_args(tmp_path / "args.txt", "--verbose", "--output"))


def test_read_transpiler_args_requires_a_file(tmp_path: Path) -> None:
    with pytest.raises(PathError):
        read_transpiler_args(tmp_path / "missing.txt")
    with pytest.raises(PathError):
        read_transpiler_args(tmp_path)


# ---------------------------------------------------------------------------
# anvil compile
# ---------------------------------------------------------------------------


def test_compile_builds_context_and_runs_compiler(tmp_path: Path, compiler: MagicMock) -> None:
    project = tmp_path / "project-root"
    args_file = write_args(tmp_path / "args.txt", "--output", str(project), "--verbose")

    status = main(
        ["compile", "--stage", "hw,hls", "--transpiler-args-file", str(args_file), "a.slang", "b.slang#add"],
        compiler=compiler,
    )

    assert status == 0
    compiler.compile.assert_called_once()
    context, target, runtime = compiler.compile.call_args.args
    assert isinstance(context, CompileContext)
    assert target == "b.slang#add"
    assert isinstance(runtime, LocalRuntime)
    assert context.execution.ordered_stages() == [CompileStage.HLS, CompileStage.HW]
    assert context.execution.project.top_function == "add"
    assert context.execution.project.apps == ("a.slang", "b.slang")
    assert context.execution.project.transpiler_args == ("--verbose",)
    assert (project / "project" / "hls").is_dir()


def test_compile_defaults_project_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, compiler: MagicMock) -> None:
    monkeypatch.chdir(tmp_path)

    assert main(["compile", "app.slang#add"], compiler=compiler) == 0

    context = compiler.compile.call_args.args[0]
    assert context.execution.project.project_workspace.root.resolve() == (tmp_path / "anvil").resolve()
    assert (tmp_path / "anvil" / "sources" / "original").is_dir()


def test_compile_with_sandbox(tmp_path: Path, compiler: MagicMock) -> None:
    args_file = write_args(tmp_path / "args.txt", "--output", str(tmp_path / "proj"))

    main(
        [
            "compile",
            "--transpiler-args-file",
            str(args_file),
            "--sandbox-path",
            str(tmp_path / "sandbox"),
            "app.slang#add",
        ],
        compiler=compiler,
    )

    context, _, runtime = compiler.compile.call_args.args
    assert context.execution.is_sandboxed
    assert isinstance(runtime, VagrantRuntime)


def test_compile_requires_method_target(tmp_path: Path, compiler: MagicMock) -> None:
    args_file = write_args(tmp_path / "args.txt", "--output", str(tmp_path / "proj"))

    with pytest.raises(SystemExit) as exc_info:
        main(["compile", "--transpiler-args-file", str(args_file), "app.slang"], compiler=compiler)

    assert exc_info.value.code == 2
    compiler.compile.assert_not_called()


def test_compile_dangling_output_is_a_usage_error(tmp_path: Path, compiler: MagicMock) -> None:
    args_file = write_args(tmp_path / "args.txt", "--output")

    with pytest.raises(SystemExit) as exc_info:
        main(["compile", "--transpiler-args-file", str(args_file), "app.slang#add"], compiler=compiler)

    assert exc_info.value.code == 2


@pytest.mark.parametrize("args_file", ["missing.txt", "."])
def test_compile_unreadable_args_file(tmp_path: Path, compiler: MagicMock, args_file: str) -> None:
    status = main(["compile", "--transpiler-args-file", str(tmp_path / args_file), "app.slang#add"], compiler=compiler)

    assert status == 1
    compiler.compile.assert_not_called()


def test_compile_missing_sandbox_directory(tmp_path: Path, compiler: MagicMock) -> None:
    args_file = write_args(tmp_path / "args.txt", "--output", str(tmp_path / "proj"))
    compiler.compile.side_effect = lambda context, target, runtime: runtime.start() or 0

    status = main(
        [
            "compile",
            "--transpiler-args-file",
            str(args_file),
            "--sandbox-path",
            str(tmp_path / "no-such-sandbox"),
            "app.slang#add",
        ],
        compiler=compiler,
    )

    assert status == 1


def test_internal_value_error_is_not_a_usage_error(tmp_path: Path, compiler: MagicMock) -> None:
    args_file = write_args(tmp_path / "args.txt", "--output", str(tmp_path / "proj"))
    compiler.compile.side_effect = ValueError("backend bug")

    with pytest.raises(ValueError, match="backend bug"):
        main(["compile", "--transpiler-args-file", str(args_file), "app.slang#add"], compiler=compiler)


def test_compile_without_backend(tmp_path: Path) -> None:
    args_file = write_args(tmp_path / "args.txt", "--output", str(tmp_path / "proj"))

    assert main(["compile", "--transpiler-args-file", str(args_file), "app.slang#add"]) == COMPILER_NOT_LINKED


def test_compile_stage_failure_exit_code(tmp_path: Path, compiler: MagicMock) -> None:
    args_file = write_args(tmp_path / "args.txt", "--output", str(tmp_path / "proj"))
    compiler.compile.side_effect = ProcessFailure(ProcessResult(command=["vivado_hls"], exit_code=3))

    assert main(["compile", "--transpiler-args-file", str(args_file), "app.slang#add"], compiler=compiler) == 3


# ---------------------------------------------------------------------------
# anvil sandbox
# ---------------------------------------------------------------------------


def test_sandbox_generates_and_boots(tmp_path: Path, mock_vagrant_up: MagicMock) -> None:
    out = tmp_path / "sandbox"

    assert main(["sandbox", "--exclude-sireum", str(out)]) == 0

    assert (out / "Vagrantfile").is_file()
    assert (out / "provision" / "scripts" / "fix_dash.sh").is_file()
    assert not (out / "provision" / "scripts" / "install_kekinian.sh").exists()
    mock_vagrant_up.assert_called_once_with(["vagrant", "up"], cwd=out, echo=True)


def test_sandbox_with_installers(tmp_path: Path, mock_vagrant_up: MagicMock, installers: dict[str, Path]) -> None:
    out = tmp_path / "sandbox"

    status = main(["sandbox", "-p", str(installers["petalinux"]), "-x", str(installers["xilinx"]), str(out)])

    assert status == 0
    assert (out / "downloads" / installers["petalinux"].name).is_file()
    assert (out / "provision" / "scripts" / "install_vivado.sh").is_file()
    assert "config.disksize.size = '256GB'" in (out / "Vagrantfile").read_text()


def test_sandbox_missing_installer(tmp_path: Path, mock_vagrant_up: MagicMock) -> None:
    out = tmp_path / "sandbox"

    assert main(["sandbox", "-p", str(tmp_path / "missing.run"), str(out)]) == 1

    mock_vagrant_up.assert_not_called()
    assert not out.exists()


def test_sandbox_vagrant_failure_exit_code(tmp_path: Path, mock_vagrant_up: MagicMock) -> None:
    mock_vagrant_up.side_effect = ProcessFailure(ProcessResult(command=["vagrant", "up"], exit_code=5))

    assert main(["sandbox", str(tmp_path / "sandbox")]) == 5

"""Tests for the compiler tool wrapper."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from rsbuild.tool import CompilerTool, ToolInvocationError, ToolResult


def _tool(tmp_path: Path, **kwargs) -> CompilerTool:  # type: ignore[no-untyped-def]
    return CompilerTool(
        "/sdk/platform-tools/llvm-rs-cc",
        ["/sdk/rs/clang-include", "/sdk/rs/include"],
        tmp_path / "gen",
        tmp_path / "res" / "raw",
        tmp_path / "bin",
        **kwargs,
    )


def test_build_command_layout(tmp_path: Path) -> None:
    tool = _tool(tmp_path)

    command = tool.build_command(tmp_path / "src" / "a.rs")

    assert command == [
        "/sdk/platform-tools/llvm-rs-cc",
        "-I",
        "/sdk/rs/clang-include",
        "-I",
        "/sdk/rs/include",
        "-p",
        str(tmp_path / "gen"),
        "-o",
        str(tmp_path / "res" / "raw"),
        "-d",
        str(tmp_path / "bin"),
        "-MD",
        str(tmp_path / "src" / "a.rs"),
    ]


def test_run_delegates_to_runner_with_cwd(tmp_path: Path) -> None:
    calls: list[tuple[list[str], Path | None]] = []

    def runner(args, cwd=None):  # type: ignore[no-untyped-def]
        calls.append((list(args), cwd))
        return ToolResult(exit_code=1, lines=["boom"])

    tool = _tool(tmp_path, cwd=tmp_path, runner=runner)
    result = tool.run(["llvm-rs-cc", "a.rs"])

    assert result == ToolResult(exit_code=1, lines=["boom"])
    assert calls == [(["llvm-rs-cc", "a.rs"], tmp_path)]


def test_default_runner_merges_stdout_and_stderr(tmp_path: Path) -> None:
    tool = _tool(tmp_path, cwd=tmp_path)
    script = "import sys; print('to-out'); print('to-err', file=sys.stderr); sys.exit(3)"

    result = tool.run([sys.executable, "-c", script])

    assert result.exit_code == 3
    assert sorted(result.lines) == ["to-err", "to-out"]


def test_default_runner_reports_missing_executable(tmp_path: Path) -> None:
    tool = _tool(tmp_path, cwd=tmp_path)
    missing = str(tmp_path / "no-such-compiler")

    with pytest.raises(ToolInvocationError) as excinfo:
        tool.run([missing, "a.rs"])

    assert excinfo.value.command[0] == missing
    assert missing in str(excinfo.value)


def test_default_runner_replaces_undecodable_bytes(tmp_path: Path) -> None:
    tool = _tool(tmp_path, cwd=tmp_path)
    script = (
        "import sys; sys.stdout.buffer.write(b'/p/a.rs:1:1: caf\\xe9\\n'); "
        "sys.stdout.flush(); sys.exit(1)"
    )

    result = tool.run([sys.executable, "-c", script])

    assert result.exit_code == 1
    assert result.lines == ["/p/a.rs:1:1: caf\ufffd"]


@pytest.mark.parametrize("include_paths", [[], ["/sdk/rs/include"], ["/a", "/b", "/c"]])
def test_compiler_requires_two_include_paths(tmp_path: Path, include_paths: list[str]) -> None:
    with pytest.raises(ValueError):
        CompilerTool(
            "llvm-rs-cc",
            include_paths,
            tmp_path / "gen",
            tmp_path / "res" / "raw",
            tmp_path / "bin",
        )

"""Tests for rsbuild.logging."""

from __future__ import annotations

from pathlib import Path

import pytest

from rsbuild.logging import configure_logging, get_logger
from rsbuild.workspace import LocalWorkspace


def test_compiler_output_is_written_verbatim(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging()

    get_logger("console").info("/proj/src/a.rs:1:1: note: kernel exported")
    get_logger("console").error("Segmentation fault (core dumped)")

    captured = capsys.readouterr()
    assert captured.out == "/proj/src/a.rs:1:1: note: kernel exported\n"
    assert captured.err == "Segmentation fault (core dumped)\n"


def test_progress_messages_keep_prefix(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging()

    get_logger("builder").info("Starting build for /proj")
    get_logger("builder").debug("hidden unless verbose")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == "[rsbuild] INFO Starting build for /proj\n"


def test_verbose_enables_debug_messages(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(verbose=True)

    get_logger("scanner").debug("Scanned 3 files")

    assert "[rsbuild] DEBUG Scanned 3 files" in capsys.readouterr().err


def test_workspace_console_goes_through_console_channel(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    configure_logging()
    workspace = LocalWorkspace(tmp_path)

    workspace.console(["RenderScript: com/example/blur.rs", "llvm-rs-cc -MD blur.rs"])
    workspace.console(["1 error generated."], error=True)

    captured = capsys.readouterr()
    assert captured.out == "RenderScript: com/example/blur.rs\nllvm-rs-cc -MD blur.rs\n"
    assert captured.err == "1 error generated.\n"


def test_reconfiguring_does_not_duplicate_output(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging()
    configure_logging()

    get_logger("console").info("once")

    assert capsys.readouterr().out == "once\n"


def test_log_file_receives_both_channels(tmp_path: Path) -> None:
    log_file = tmp_path / "build.log"
    configure_logging(log_file=log_file)

    get_logger("builder").info("Starting build")
    get_logger("console").info("compiler says hi")

    text = log_file.read_text(encoding="utf-8")
    assert "rsbuild.builder: Starting build" in text
    assert "rsbuild.console: compiler says hi" in text

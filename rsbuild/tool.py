"""External compiler invocation."""

from __future__ import annotations

import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Sequence

from .logging import get_logger


class ToolInvocationError(RuntimeError):
    """Raised when the external tool cannot be started or is interrupted."""

    def __init__(self, command: Sequence[str], reason: str) -> None:
        self.command = list(command)
        self.reason = reason
        executable = self.command[0] if self.command else "<empty command>"
        super().__init__(f"Failed to run {executable}: {reason}")


@dataclass(frozen=True)
class ToolResult:
    """Exit status and merged stdout/stderr lines of one tool run."""

    exit_code: int
    lines: List[str]


class ExternalTool(ABC):
    """Contract for the compiler the coordinator drives."""

    @abstractmethod
    def build_command(self, source: Path) -> List[str]:
        """Return the argument vector that compiles ``source``."""

    @abstractmethod
    def run(self, command: Sequence[str]) -> ToolResult:
        """Run ``command`` to completion and capture its output."""


Runner = Callable[..., ToolResult]


class CompilerTool(ExternalTool):
    """Runs a RenderScript-style compiler with a fixed argument layout."""

    def __init__(
        self,
        executable: str,
        include_paths: Sequence[Path | str],
        gen_dir: Path,
        res_dir: Path,
        dep_dir: Path,
        *,
        cwd: Path | None = None,
        runner: Runner | None = None,
    ) -> None:
        if len(include_paths) != 2:
            raise ValueError(
                f"Compiler needs exactly two include paths, got {len(include_paths)}"
            )
        self.executable = executable
        self.include_paths = [str(path) for path in include_paths]
        self.gen_dir = gen_dir
        self.res_dir = res_dir
        self.dep_dir = dep_dir
        self.cwd = cwd
        self._runner = runner or self._default_runner
        self.logger = get_logger("tool")

    def build_command(self, source: Path) -> List[str]:
        command = [self.executable]
        for include in self.include_paths:
            command.extend(["-I", include])
        command.extend(
            [
                "-p",
                str(self.gen_dir),
                "-o",
                str(self.res_dir),
                "-d",
                str(self.dep_dir),
                "-MD",
                str(source),
            ]
        )
        return command

    def run(self, command: Sequence[str]) -> ToolResult:
        self.logger.debug("Executing %s", " ".join(command))
        return self._runner(list(command), cwd=self.cwd)

    @staticmethod
    def _default_runner(args: List[str], *, cwd: Path | None = None) -> ToolResult:
        try:
            completed = subprocess.run(
                args,
                cwd=str(cwd) if cwd is not None else None,
                check=False,
                encoding="utf-8",
                errors="replace",
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            raise ToolInvocationError(args, str(exc)) from exc
        return ToolResult(
            exit_code=completed.returncode,
            lines=completed.stdout.splitlines(),
        )


__all__ = ["CompilerTool", "ExternalTool", "ToolInvocationError", "ToolResult"]

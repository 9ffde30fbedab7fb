"""Helper utilities for constructing throwaway projects and a fake compiler."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from rsbuild.config import RsBuildConfig, load_config
from rsbuild.tool import CompilerTool, ToolInvocationError, ToolResult
from rsbuild.workspace import LocalWorkspace


class ProjectBuilder:
    """Utility for writing files into a throwaway project."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = (tmp_path / "project").resolve()
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def delete(self, relative: str) -> None:
        (self.root / relative).unlink()

    def config(self) -> RsBuildConfig:
        return load_config(self.root)

    def path(self) -> Path:
        """Return the project root path."""
        return self.root


class FakeCompiler:
    """Stands in for the compiler binary: writes outputs and a dependency file.

    Per-source behaviour is keyed by the source file stem. ``failures`` maps a
    stem to the (exit code, output lines) to return instead of compiling;
    ``dependencies`` lists extra project-relative prerequisites to record.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.calls: List[List[str]] = []
        self.failures: Dict[str, Tuple[int, List[str]]] = {}
        self.dependencies: Dict[str, List[str]] = {}
        self.output: Dict[str, List[str]] = {}
        self.dep_text: Dict[str, str] = {}
        self.missing_executable = False

    def __call__(self, args: List[str], *, cwd: Optional[Path] = None) -> ToolResult:
        self.calls.append(list(args))
        if self.missing_executable:
            raise ToolInvocationError(args, "No such file or directory")

        source = Path(args[-1])
        stem = source.stem
        if stem in self.failures:
            exit_code, lines = self.failures[stem]
            return ToolResult(exit_code=exit_code, lines=list(lines))

        gen_dir = Path(args[args.index("-p") + 1])
        res_dir = Path(args[args.index("-o") + 1])
        dep_dir = Path(args[args.index("-d") + 1])
        outputs = [res_dir / f"{stem}.bc", gen_dir / f"ScriptC_{stem}.java"]
        for output in outputs:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(f"compiled {stem}\n", encoding="utf-8")

        prerequisites = [str(source)]
        prerequisites.extend(str(self.root / dep) for dep in self.dependencies.get(stem, []))
        prerequisites.append("/usr/lib/rs/rs_core.rsh")
        dep_dir.mkdir(parents=True, exist_ok=True)
        text = self.dep_text.get(stem)
        if text is None:
            text = _make_rule(outputs, prerequisites)
        (dep_dir / f"{stem}.d").write_text(text, encoding="utf-8")
        return ToolResult(exit_code=0, lines=list(self.output.get(stem, [])))

    def compiled_stems(self) -> List[str]:
        return [Path(call[-1]).stem for call in self.calls]

    def tool_factory(self, config: RsBuildConfig) -> CompilerTool:
        return CompilerTool(
            config.compiler.path,
            config.include_paths(),
            config.gen_dir,
            config.res_dir,
            config.dep_dir,
            cwd=config.root,
            runner=self,
        )


class RecordingWorkspace(LocalWorkspace):
    """LocalWorkspace that also keeps console output for assertions."""

    def __init__(self, root: Path) -> None:
        super().__init__(root)
        self.console_lines: List[Tuple[str, bool]] = []

    def console(self, lines: Iterable[str], *, error: bool = False) -> None:
        lines = list(lines)
        self.console_lines.extend((line, error) for line in lines)
        super().console(lines, error=error)


def _make_rule(outputs: Iterable[Path], prerequisites: Iterable[str]) -> str:
    targets = " ".join(str(output) for output in outputs)
    body = " \\\n  ".join(prerequisites)
    return f"{targets}: \\\n  {body}\n"


__all__ = ["FakeCompiler", "ProjectBuilder", "RecordingWorkspace"]

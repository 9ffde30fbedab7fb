"""Incremental compilation of sources through an external compiler."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set

from .config import RsBuildConfig
from .depfile import DependencyFileError, read_dependency_file
from .diagnostics import parse_diagnostics
from .logging import get_logger
from .models import MARKER_COMPILER, MARKER_PROJECT, Bundle, Severity, SourceUnit
from .scanner import Delta
from .tool import ExternalTool, ToolInvocationError, ToolResult
from .workspace import Workspace


@dataclass
class CompileResult:
    """Sources that compiled and sources that must be retried, in build order."""

    succeeded: List[SourceUnit] = field(default_factory=list)
    failed: List[SourceUnit] = field(default_factory=list)


class CompileCoordinator:
    """Drives the compiler over changed sources and tracks their outputs.

    The coordinator owns the in-memory bundle collection for one build
    session. Dependency files written by the compiler are the durable record
    and are re-read by :meth:`reload` when a new session starts.
    """

    def __init__(
        self,
        config: RsBuildConfig,
        workspace: Workspace,
        tool: ExternalTool,
    ) -> None:
        self.config = config
        self.workspace = workspace
        self.tool = tool
        self.bundles: Dict[str, Bundle] = {}
        self.needs_recompile: Set[str] = set()
        self.logger = get_logger("coordinator")

    @property
    def label(self) -> str:
        return self.config.compiler.label

    def source_unit(self, relative: str) -> SourceUnit:
        return SourceUnit(path=self.workspace.resolve(relative), relative=relative)

    def dependency_file_for(self, source: SourceUnit) -> Path:
        name = Path(source.relative).stem + self.config.output.dep_extension
        return self.config.dep_dir / name

    def dependency_file_collisions(
        self, sources: Sequence[SourceUnit]
    ) -> Dict[Path, List[str]]:
        """Dependency files claimed by more than one source.

        Dependency files are named after the source stem only, so same-named
        sources in different folders overwrite each other's record.
        """
        claims: Dict[Path, List[str]] = {}
        for source in sources:
            claims.setdefault(self.dependency_file_for(source), []).append(source.relative)
        return {path: names for path, names in claims.items() if len(names) > 1}

    def tracked_dependencies(self) -> List[str]:
        """Every dependency recorded by the current bundles, deduplicated."""
        seen: Dict[str, None] = {}
        for bundle in self.bundles.values():
            for dependency in bundle.dependencies:
                seen.setdefault(dependency, None)
        return list(seen)

    # ------------------------------------------------------------------
    # Build pass

    def compile(
        self, sources: Sequence[SourceUnit], *, verbose: Optional[bool] = None
    ) -> CompileResult:
        """Compile ``sources`` one at a time, in order."""
        verbose = self.config.verbose if verbose is None else verbose
        result = CompileResult()

        for source in sources:
            if verbose:
                self.workspace.console([f"{self.label}: {self._display_name(source)}"])

            self.workspace.remove_markers(source.relative, MARKER_COMPILER)
            bundle = self.bundles.get(source.relative)
            if bundle is not None:
                for dependency in bundle.dependencies:
                    self.workspace.remove_markers(dependency, MARKER_COMPILER)

            command = self.tool.build_command(source.path)
            if not self._execute(command, verbose=verbose):
                self.needs_recompile.add(source.relative)
                result.failed.append(source)
                continue

            try:
                self._refresh_bundle(source, compiled=True)
            except DependencyFileError as exc:
                dep_file = self.dependency_file_for(source)
                self.logger.error("Dependency file %s is corrupt: %s", dep_file, exc)
                self.workspace.mark_file(
                    source.relative,
                    MARKER_COMPILER,
                    f"Corrupt dependency file {dep_file.name}: {exc}",
                    None,
                    Severity.ERROR,
                )
                self.needs_recompile.add(source.relative)
                result.failed.append(source)
                continue

            self.needs_recompile.discard(source.relative)
            result.succeeded.append(source)

        if result.succeeded:
            self.workspace.refresh(self.config.res_dir, 1)

        self.logger.info(
            "%s: %d compiled, %d failed",
            self.label,
            len(result.succeeded),
            len(result.failed),
        )
        return result

    def _execute(self, command: List[str], *, verbose: bool) -> bool:
        if verbose:
            self.workspace.console([" ".join(command)])

        try:
            outcome: ToolResult = self.tool.run(command)
        except ToolInvocationError as exc:
            self.logger.error("%s", exc)
            self.workspace.mark_project(
                MARKER_PROJECT,
                f"Error executing {self.label}. Please check the compiler is present at {command[0]}",
                Severity.ERROR,
            )
            return False

        parsed = parse_diagnostics(outcome.lines, self.workspace.root)
        for diagnostic in parsed.diagnostics:
            self.workspace.mark_file(
                diagnostic.file,
                MARKER_COMPILER,
                diagnostic.message,
                diagnostic.line,
                diagnostic.severity,
            )

        unparsed = outcome.exit_code != 0 and (
            not parsed.fully_parsed or not parsed.diagnostics
        )
        if unparsed:
            self.workspace.console(outcome.lines, error=True)
            self.workspace.mark_project(
                MARKER_PROJECT,
                f"Unparsed {self.label} error! Check the console for output.",
                Severity.ERROR,
            )
        elif verbose and outcome.lines:
            self.workspace.console(outcome.lines)

        return outcome.exit_code == 0

    def _refresh_bundle(self, source: SourceUnit, *, compiled: bool) -> Optional[Bundle]:
        dep_file = self.dependency_file_for(source)
        if not dep_file.exists():
            if not compiled:
                self.bundles.pop(source.relative, None)
                return None
            self.logger.warning("No dependency file written for %s", source.relative)
            return self.bundles.setdefault(source.relative, Bundle(source=source))

        outputs, dependencies = read_dependency_file(dep_file, self.workspace.root)
        bundle = self.bundles.setdefault(source.relative, Bundle(source=source))
        bundle.outputs = outputs
        bundle.dependencies = dependencies
        return bundle

    # ------------------------------------------------------------------
    # Session management

    def reload(self, known_sources: Iterable[str]) -> None:
        """Rebuild bundles from the dependency files of previously known sources."""
        for relative in known_sources:
            source = self.source_unit(relative)
            try:
                self._refresh_bundle(source, compiled=False)
            except DependencyFileError as exc:
                self.logger.warning(
                    "Discarding corrupt dependency file for %s: %s", relative, exc
                )
                self.bundles.pop(relative, None)
                self.needs_recompile.add(relative)
        self.logger.debug("Reloaded %d bundles", len(self.bundles))

    def plan(
        self,
        delta: Delta,
        sources: Sequence[SourceUnit],
        pending: Iterable[str] = (),
    ) -> List[SourceUnit]:
        """Return the sources that need compiling given ``delta``."""
        touched = set(delta.changed) | set(delta.removed)
        retry = set(pending) | self.needs_recompile
        selected: List[SourceUnit] = []
        for source in sources:
            bundle = self.bundles.get(source.relative)
            if (
                source.relative in touched
                or source.relative in retry
                or bundle is None
                or any(dependency in touched for dependency in bundle.dependencies)
                or any(not self.workspace.resolve(output).exists() for output in bundle.outputs)
            ):
                selected.append(source)
        return selected

    def prune(
        self, sources: Sequence[SourceUnit], known: Iterable[str] = ()
    ) -> List[str]:
        """Remove bundles for sources that no longer exist."""
        current = {source.relative for source in sources}
        stale = sorted((set(self.bundles) | set(known)) - current)
        for relative in stale:
            self.remove_bundle(self.bundles.get(relative) or Bundle(self.source_unit(relative)))
            self.needs_recompile.discard(relative)
        return stale

    def remove_bundle(self, bundle: Bundle) -> None:
        """Delete a bundle's outputs and dependency file. Safe to repeat."""
        for output in bundle.outputs:
            self.workspace.resolve(output).unlink(missing_ok=True)
        self.dependency_file_for(bundle.source).unlink(missing_ok=True)
        self.bundles.pop(bundle.source.relative, None)
        self.logger.debug("Removed outputs of %s", bundle.source.relative)

    def _display_name(self, source: SourceUnit) -> str:
        for folder in self.config.source_dirs:
            try:
                return source.path.relative_to(folder).as_posix()
            except ValueError:
                continue
        return source.path.name


__all__ = ["CompileCoordinator", "CompileResult"]

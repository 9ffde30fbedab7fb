"""Build pipeline: scan, plan, compile and persist state for a project."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from .config import RsBuildConfig, load_config
from .coordinator import CompileCoordinator
from .logging import get_logger
from .models import Marker
from .scanner import SourceScanner
from .stores import BuildState
from .tool import CompilerTool, ExternalTool
from .workspace import LocalWorkspace

ToolFactory = Callable[[RsBuildConfig], ExternalTool]


@dataclass
class BuildOutcome:
    """Result of a build run, with paths relative to the project root."""

    root: Path
    compiled: List[str] = field(default_factory=list)
    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    markers: List[Marker] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def default_tool(config: RsBuildConfig) -> ExternalTool:
    return CompilerTool(
        config.compiler.path,
        config.include_paths(),
        config.gen_dir,
        config.res_dir,
        config.dep_dir,
        cwd=config.root,
    )


class Builder:
    """Coordinates incremental build and clean runs for a project directory."""

    def __init__(
        self,
        scanner: SourceScanner | None = None,
        tool_factory: ToolFactory | None = None,
    ) -> None:
        self.scanner = scanner or SourceScanner()
        self.tool_factory = tool_factory or default_tool
        self.logger = get_logger("builder")

    def run_build(
        self,
        path: str | Path,
        *,
        full: bool = False,
        verbose: Optional[bool] = None,
    ) -> BuildOutcome:
        """Compile the sources of the project at ``path`` that need it."""
        root = _resolve_root(path)
        config = load_config(root)
        self.logger.info("Starting build for %s", root)

        state = BuildState(config.state_path)
        workspace = LocalWorkspace(config.root)
        coordinator = CompileCoordinator(config, workspace, self.tool_factory(config))
        coordinator.reload(state.sources)

        for folder in (config.gen_dir, config.res_dir, config.dep_dir):
            folder.mkdir(parents=True, exist_ok=True)

        previous = {} if full else state.fingerprints
        scan = self.scanner.scan(config, previous, tracked=coordinator.tracked_dependencies())
        removed = coordinator.prune(scan.sources, known=state.sources)
        for dep_file, sharing in coordinator.dependency_file_collisions(scan.sources).items():
            self.logger.warning(
                "Sources %s share dependency file %s; their outputs are tracked unreliably",
                ", ".join(sharing),
                dep_file,
            )

        if full:
            to_compile = list(scan.sources)
        else:
            to_compile = coordinator.plan(scan.delta, scan.sources, state.pending)
        self.logger.debug("%d of %d sources need compiling", len(to_compile), len(scan.sources))

        result = coordinator.compile(to_compile, verbose=verbose)

        # Headers first seen in this pass are recorded so later edits are detected.
        fingerprints = dict(scan.snapshot)
        new_dependencies = [
            dependency
            for dependency in coordinator.tracked_dependencies()
            if dependency not in fingerprints
        ]
        fingerprints.update(self.scanner.fingerprint_paths(config, new_dependencies))

        state.update(
            sources=[source.relative for source in scan.sources],
            pending=coordinator.needs_recompile,
            fingerprints=fingerprints,
        )
        state.persist()

        return BuildOutcome(
            root=config.root,
            compiled=[source.relative for source in to_compile],
            succeeded=[source.relative for source in result.succeeded],
            failed=[source.relative for source in result.failed],
            removed=removed,
            markers=list(workspace.markers),
        )

    def run_clean(self, path: str | Path) -> int:
        """Delete generated outputs and dependency files, then forget all state."""
        root = _resolve_root(path)
        config = load_config(root)
        state = BuildState(config.state_path)
        workspace = LocalWorkspace(config.root)
        coordinator = CompileCoordinator(config, workspace, self.tool_factory(config))
        coordinator.reload(state.sources)

        removed = len(coordinator.prune([], known=state.sources))
        state.clear()
        state.persist()
        self.logger.info("Removed outputs of %d sources under %s", removed, root)
        return removed


def _resolve_root(path: str | Path) -> Path:
    root = Path(path).expanduser().resolve()
    if not root.exists():
        raise FileNotFoundError(f"Project path not found: {path}")
    if not root.is_dir():
        raise NotADirectoryError(f"Project path is not a directory: {path}")
    return root


__all__ = ["BuildOutcome", "Builder", "default_tool"]

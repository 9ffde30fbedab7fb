"""Incremental RenderScript compilation driven by an external compiler."""

from .builder import BuildOutcome, Builder
from .coordinator import CompileCoordinator, CompileResult

__all__ = ["BuildOutcome", "Builder", "CompileCoordinator", "CompileResult"]

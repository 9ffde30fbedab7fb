"""Persistent stores used across builds."""

from .build_state import BuildState

__all__ = ["BuildState"]

"""Workspace capability consumed by the compile coordinator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .logging import get_logger
from .models import Marker, Severity


class Workspace(ABC):
    """Path resolution, problem markers and refresh notification for a project."""

    root: Path

    @abstractmethod
    def resolve(self, relative: str) -> Path:
        """Return the absolute location of a project-relative path."""

    @abstractmethod
    def mark_file(
        self,
        file: str,
        kind: str,
        message: str,
        line: Optional[int],
        severity: Severity,
    ) -> None:
        """Attach a marker to a project file."""

    @abstractmethod
    def mark_project(self, kind: str, message: str, severity: Severity) -> None:
        """Attach a marker to the project itself."""

    @abstractmethod
    def remove_markers(self, file: str, kind: str) -> None:
        """Drop markers of ``kind`` from ``file``."""

    @abstractmethod
    def refresh(self, directory: Path, depth: int) -> None:
        """Notify that ``directory`` contents changed on disk."""

    @abstractmethod
    def console(self, lines: Iterable[str], *, error: bool = False) -> None:
        """Echo tool output to the user."""


class LocalWorkspace(Workspace):
    """Filesystem-backed workspace that keeps markers in memory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.markers: List[Marker] = []
        self.refreshed: List[Tuple[Path, List[Path]]] = []
        self.logger = get_logger("workspace")
        self.console_logger = get_logger("console")

    def resolve(self, relative: str) -> Path:
        return self.root / relative

    def mark_file(
        self,
        file: str,
        kind: str,
        message: str,
        line: Optional[int],
        severity: Severity,
    ) -> None:
        self.markers.append(
            Marker(kind=kind, message=message, severity=severity, file=file, line=line)
        )

    def mark_project(self, kind: str, message: str, severity: Severity) -> None:
        self.markers.append(Marker(kind=kind, message=message, severity=severity))

    def remove_markers(self, file: str, kind: str) -> None:
        self.markers = [
            marker
            for marker in self.markers
            if not (marker.file == file and marker.kind == kind)
        ]

    def refresh(self, directory: Path, depth: int) -> None:
        entries = _list_entries(directory, depth)
        self.logger.debug("Refreshed %s (%d entries)", directory, len(entries))
        self.refreshed.append((directory, entries))

    def console(self, lines: Iterable[str], *, error: bool = False) -> None:
        emit = self.console_logger.error if error else self.console_logger.info
        for line in lines:
            emit("%s", line)


def _list_entries(directory: Path, depth: int) -> List[Path]:
    if depth <= 0 or not directory.is_dir():
        return []
    entries: List[Path] = []
    for child in sorted(directory.iterdir()):
        entries.append(child)
        if child.is_dir():
            entries.extend(_list_entries(child, depth - 1))
    return entries


__all__ = ["LocalWorkspace", "Workspace"]

"""Core data models shared across rsbuild components."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

MARKER_COMPILER = "rsbuild.compiler"
MARKER_PROJECT = "rsbuild.project"


class Severity(str, Enum):
    """Marker severity levels."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class SourceUnit:
    """A buildable input file."""

    path: Path
    relative: str


@dataclass
class Bundle:
    """Outputs and dependencies recorded for a compiled source."""

    source: SourceUnit
    outputs: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Diagnostic:
    """A single compiler-reported problem attributed to a project file."""

    file: str
    line: int
    message: str
    severity: Severity = Severity.ERROR


@dataclass(frozen=True)
class Marker:
    """Problem attached to a project file, or to the project when file is None."""

    kind: str
    message: str
    severity: Severity
    file: Optional[str] = None
    line: Optional[int] = None

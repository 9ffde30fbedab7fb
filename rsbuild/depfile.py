"""Parsing of Makefile-style dependency files emitted by the compiler."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence, Tuple

from .paths import relativize


class DependencyFileError(RuntimeError):
    """Raised when a dependency file does not contain a usable rule."""


def parse_dependency_file(raw: str, root: Path | str) -> Tuple[List[str], List[str]]:
    """Return ``(outputs, dependencies)`` relative to ``root`` from a rule text.

    The rule may span several physical lines joined by trailing backslashes.
    Paths outside the project root (system headers and the like) are dropped;
    order and duplicates are kept as the tool wrote them.
    """
    logical = " ".join(_strip_continuation(line) for line in raw.split("\n"))

    split_at = _rule_colon(logical)
    if split_at < 0:
        raise DependencyFileError("Dependency rule has no ':' separator")

    left = logical[:split_at].strip()
    right = logical[split_at + 1:].strip()
    if not right:
        raise DependencyFileError("Dependency rule lists no dependencies")

    return _project_paths(left.split(), root), _project_paths(right.split(), root)


def read_dependency_file(path: Path, root: Path | str) -> Tuple[List[str], List[str]]:
    """Read and parse the dependency file at ``path``."""
    try:
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise DependencyFileError(f"{path.name} is not valid UTF-8: {exc.reason}") from exc
    return parse_dependency_file(raw, root)


def _strip_continuation(line: str) -> str:
    stripped = line.strip()
    if stripped.endswith("\\"):
        stripped = stripped[:-1]
    return stripped


def _rule_colon(text: str) -> int:
    """Index of the first colon separating targets from prerequisites."""
    index = text.find(":")
    while index >= 0:
        if not _is_drive_colon(text, index):
            return index
        index = text.find(":", index + 1)
    return -1


def _is_drive_colon(text: str, index: int) -> bool:
    # C:\path or C:/path at the start of a token.
    if index < 1 or not text[index - 1].isalpha():
        return False
    if index >= 2 and not text[index - 2].isspace():
        return False
    return index + 1 < len(text) and text[index + 1] in "\\/"


def _project_paths(tokens: Sequence[str], root: Path | str) -> List[str]:
    paths: List[str] = []
    for token in tokens:
        relative = relativize(token, root)
        if relative is not None:
            paths.append(relative)
    return paths


__all__ = ["DependencyFileError", "parse_dependency_file", "read_dependency_file"]

"""Helpers for mapping tool-reported paths onto the project tree."""

from __future__ import annotations

import os
import posixpath
from pathlib import Path, PureWindowsPath
from typing import Optional

_SEPARATORS = ("/", "\\")


def is_absolute(path: str) -> bool:
    """Return True for POSIX absolute paths and Windows drive paths alike."""
    return os.path.isabs(path) or PureWindowsPath(path).is_absolute()


def relativize(path: str, root: Path | str) -> Optional[str]:
    """Return ``path`` relative to ``root`` (posix separators) or None when outside it.

    Relative paths are taken to be relative to the project root already; they
    are normalised and rejected only when they climb out of the root.
    """
    candidate = path.strip()
    if not candidate:
        return None

    if not is_absolute(candidate):
        normalised = posixpath.normpath(candidate.replace("\\", "/"))
        if normalised in {".", ".."} or normalised.startswith("../"):
            return None
        return normalised

    root_str = str(root)
    if len(root_str) > 1:
        root_str = root_str.rstrip("/\\")
    if not candidate.startswith(root_str):
        return None

    remainder = candidate[len(root_str):]
    if remainder.startswith(_SEPARATORS):
        remainder = remainder[1:]
    elif remainder and not root_str.endswith(_SEPARATORS):
        # Sibling directory sharing a name prefix, e.g. /proj-other vs /proj.
        return None
    if not remainder:
        return None
    return remainder.replace("\\", "/")


__all__ = ["is_absolute", "relativize"]

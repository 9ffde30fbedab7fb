"""Source discovery and change detection between builds."""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Sequence

from .config import RsBuildConfig
from .logging import get_logger
from .models import SourceUnit

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "__pycache__",
    ".pytest_cache",
    ".idea",
    ".rsbuild",
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}

Fingerprint = Dict[str, object]


@dataclass
class IgnoreRule:
    """Exclusion pattern from the ``sources.exclude_paths`` setting."""

    pattern: str
    directory_only: bool
    anchored: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def _build_ignore_rule(pattern: str) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        has_slash="/" in pattern,
    )


@dataclass(frozen=True)
class Delta:
    """Project-relative paths that changed since the previous snapshot."""

    added: List[str] = field(default_factory=list)
    modified: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    @property
    def changed(self) -> List[str]:
        return [*self.added, *self.modified]

    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.removed)


@dataclass
class ScanResult:
    """Snapshot of the source folders plus the sources and delta derived from it."""

    snapshot: Dict[str, Fingerprint]
    sources: List[SourceUnit]
    delta: Delta


class SourceScanner:
    """Walks the configured source folders and fingerprints their files."""

    def __init__(self) -> None:
        self.logger = get_logger("scanner")

    def scan(
        self,
        config: RsBuildConfig,
        previous: Mapping[str, Fingerprint] | None = None,
        tracked: Iterable[str] = (),
    ) -> ScanResult:
        """Return the current snapshot and its delta against ``previous``.

        ``tracked`` lists extra project-relative files, such as headers outside
        the source folders, that are fingerprinted alongside the scanned tree.
        """
        root = config.root
        previous = previous or {}
        rules = [
            rule
            for rule in (_build_ignore_rule(pattern) for pattern in config.sources.exclude_paths)
            if rule is not None
        ]

        snapshot: Dict[str, Fingerprint] = {}
        sources: List[SourceUnit] = []
        for source_dir in config.source_dirs:
            if not source_dir.is_dir():
                self.logger.debug("Source folder %s does not exist; skipping", source_dir)
                continue
            for path in _iter_files(root, source_dir, rules):
                rel_path = path.relative_to(root).as_posix()
                if rel_path in snapshot:
                    continue
                snapshot[rel_path] = _fingerprint(path, previous.get(rel_path))
                if path.suffix == config.sources.extension:
                    sources.append(SourceUnit(path=path, relative=rel_path))

        for rel_path, fingerprint in self.fingerprint_paths(config, tracked, previous).items():
            snapshot.setdefault(rel_path, fingerprint)

        sources.sort(key=lambda unit: unit.relative)
        delta = _compute_delta(previous, snapshot)
        self.logger.debug(
            "Scanned %d files (%d sources): %d added, %d modified, %d removed",
            len(snapshot),
            len(sources),
            len(delta.added),
            len(delta.modified),
            len(delta.removed),
        )
        return ScanResult(snapshot=snapshot, sources=sources, delta=delta)

    def fingerprint_paths(
        self,
        config: RsBuildConfig,
        paths: Iterable[str],
        previous: Mapping[str, Fingerprint] | None = None,
    ) -> Dict[str, Fingerprint]:
        """Fingerprint the given project-relative files that exist on disk."""
        previous = previous or {}
        fingerprints: Dict[str, Fingerprint] = {}
        for rel_path in paths:
            path = config.root / rel_path
            if rel_path in fingerprints or not path.is_file():
                continue
            fingerprints[rel_path] = _fingerprint(path, previous.get(rel_path))
        return fingerprints


def _iter_files(root: Path, start: Path, rules: Sequence[IgnoreRule]) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(start):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix()

        kept_dirs = []
        for name in sorted(dirnames):
            if name in _EXCLUDED_DIRS:
                continue
            if _should_ignore(f"{rel_dir}/{name}", True, rules):
                continue
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for filename in sorted(filenames):
            if filename in _EXCLUDED_FILES:
                continue
            if _should_ignore(f"{rel_dir}/{filename}", False, rules):
                continue
            yield current_dir / filename


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    return any(rule.matches(rel_path, is_dir) for rule in rules)


def _fingerprint(path: Path, cached: Fingerprint | None) -> Fingerprint:
    stat_result = path.stat()
    size = stat_result.st_size
    mtime_ns = stat_result.st_mtime_ns
    if (
        cached
        and cached.get("size") == size
        and cached.get("mtime_ns") == mtime_ns
        and isinstance(cached.get("hash"), str)
    ):
        file_hash = cached["hash"]
    else:
        file_hash = _hash_file(path)
    return {"size": size, "mtime_ns": mtime_ns, "hash": file_hash}


def _hash_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _compute_delta(
    previous: Mapping[str, Fingerprint], current: Mapping[str, Fingerprint]
) -> Delta:
    added = [path for path in current if path not in previous]
    removed = [path for path in previous if path not in current]
    modified = [
        path
        for path in current
        if path in previous and previous[path].get("hash") != current[path].get("hash")
    ]
    return Delta(added=sorted(added), modified=sorted(modified), removed=sorted(removed))


__all__ = ["Delta", "ScanResult", "SourceScanner"]

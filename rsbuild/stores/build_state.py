"""Persistent build state carried between incremental builds."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, Iterable, List, Mapping

_STATE_VERSION = 1


class BuildState:
    """Known sources, pending recompilations and file fingerprints for a project."""

    def __init__(self, path: Path | None) -> None:
        self._path = path
        self._sources: List[str] = []
        self._pending: List[str] = []
        self._fingerprints: Dict[str, Dict[str, object]] = {}
        self._dirty = False
        if self._path is not None:
            self._load(self._path)

    @property
    def sources(self) -> List[str]:
        return list(self._sources)

    @property
    def pending(self) -> List[str]:
        return list(self._pending)

    @property
    def fingerprints(self) -> Dict[str, Dict[str, object]]:
        return dict(self._fingerprints)

    def update(
        self,
        *,
        sources: Iterable[str],
        pending: Iterable[str],
        fingerprints: Mapping[str, Mapping[str, object]],
    ) -> None:
        self._sources = sorted(set(sources))
        self._pending = sorted(set(pending))
        self._fingerprints = {key: dict(value) for key, value in fingerprints.items()}
        self._dirty = True

    def persist(self) -> None:
        if not self._dirty or self._path is None:
            return
        payload = {
            "version": _STATE_VERSION,
            "sources": self._sources,
            "pending": self._pending,
            "fingerprints": self._fingerprints,
            "updated_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8"
        )
        self._dirty = False

    def clear(self) -> None:
        self._sources = []
        self._pending = []
        self._fingerprints = {}
        self._dirty = True

    # ------------------------------------------------------------------
    # Internal helpers

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError):
            return
        if not isinstance(data, dict) or data.get("version") != _STATE_VERSION:
            return

        self._sources = _as_path_list(data.get("sources"))
        self._pending = _as_path_list(data.get("pending"))

        fingerprints = data.get("fingerprints")
        valid: Dict[str, Dict[str, object]] = {}
        if isinstance(fingerprints, dict):
            for rel_path, entry in fingerprints.items():
                if not isinstance(rel_path, str) or not isinstance(entry, dict):
                    continue
                size = entry.get("size")
                mtime_ns = entry.get("mtime_ns")
                file_hash = entry.get("hash")
                if (
                    isinstance(size, int)
                    and isinstance(mtime_ns, int)
                    and isinstance(file_hash, str)
                ):
                    valid[rel_path] = {"size": size, "mtime_ns": mtime_ns, "hash": file_hash}
        self._fingerprints = valid
        self._dirty = False


def _as_path_list(value: object) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


__all__ = ["BuildState"]

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from avpatch.config import RECENT_DIAGRAMS_LIMIT, recent_diagrams_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecentDiagram:
    name: str
    path: str
    last_modified: float


class RecentDiagrams:
    """
    Most-recently-used diagram files, newest first.
    """

    def __init__(self, path: Optional[Path] = None, limit: int = RECENT_DIAGRAMS_LIMIT) -> None:
        self._path = path
        self._limit = max(1, int(limit))

    @property
    def path(self) -> Path:
        if self._path is None:
            self._path = recent_diagrams_path()
        return self._path

    def entries(self) -> List[RecentDiagram]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Failed to read recent diagrams '%s': %s", self.path, exc)
            return []

        out: List[RecentDiagram] = []
        seen: set[str] = set()
        for item in raw if isinstance(raw, list) else []:
            if not isinstance(item, dict):
                continue
            path = self._normalize_path(item.get("path"))
            if not path or path in seen:
                continue
            seen.add(path)
            try:
                modified = float(item.get("last_modified") or 0.0)
            except (TypeError, ValueError):
                modified = 0.0
            out.append(RecentDiagram(str(item.get("name") or Path(path).stem), path, modified))
        return out[: self._limit]

    def push(self, name: str, path: Path) -> List[RecentDiagram]:
        normalized = self._normalize_path(path)
        if not normalized:
            return self.entries()
        entry = RecentDiagram(name=name, path=normalized, last_modified=time.time())
        entries = [entry] + [item for item in self.entries() if item.path != normalized]
        return self._write(entries[: self._limit])

    def remove(self, path: Path) -> List[RecentDiagram]:
        normalized = self._normalize_path(path)
        return self._write([item for item in self.entries() if item.path != normalized])

    def clear(self) -> None:
        self._write([])

    def _write(self, entries: List[RecentDiagram]) -> List[RecentDiagram]:
        payload = [
            {"name": item.name, "path": item.path, "last_modified": item.last_modified}
            for item in entries
        ]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return entries

    @staticmethod
    def _normalize_path(path: object) -> str:
        value = str(path or "").strip()
        if not value:
            return ""
        return os.path.normpath(os.path.abspath(value))

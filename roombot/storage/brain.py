"""Key-value blob storage ("brain") for bot state."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from loguru import logger


class Brain(ABC):
    """Stores opaque string blobs under string keys.

    No transactions and no schema: callers serialize whatever they need.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the blob stored under ``key`` or None if there is none."""
        pass

    @abstractmethod
    def set(self, key: str, blob: str) -> None:
        """Store ``blob`` under ``key``, replacing any previous value."""
        pass


class MemoryBrain(Brain):
    """Dict-backed brain, used for dry runs and tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, blob: str) -> None:
        self._data[key] = blob


class FileBrain(Brain):
    """Brain storing one file per key under a root directory.

    A key like ``roombot/state`` is written to ``<root>/roombot/state.json``.
    """

    def __init__(self, root: Path):
        self.root = Path(root).expanduser()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        parts = [p for p in key.split("/") if p and p not in (".", "..")]
        if not parts:
            raise ValueError(f"Invalid brain key: {key!r}")
        return self.root.joinpath(*parts[:-1], parts[-1] + ".json")

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, blob: str) -> None:
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(blob, encoding="utf-8")
        tmp.replace(path)
        logger.debug(f"Wrote {len(blob)} bytes to {path}")

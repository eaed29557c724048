"""Versioned persistence of the economy state in durable keyed storage.

The save record is JSON with ``cash`` and ``stocks`` only.  There is no
embedded schema version: bumping ``PersistenceConfig.save_key`` makes older
saves invisible to the new build, and they are never migrated.

Storage backends
----------------
* ``FileKeyValueStore``: one ``<key>.json`` file per key under a directory.
* ``MemoryKeyValueStore``: dict-backed, for tests and embedding.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from models.economy import EconomyState, SavedState

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9._-]+$")


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class MemoryKeyValueStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class FileKeyValueStore:
    """Stores each key as ``<directory>/<key>.json``.

    The directory is created on first write.  Writes go to a temporary file
    that is then renamed over the target, so a crash mid-write never leaves
    a half-written save behind.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key '{key}'.")
        return self._directory / f"{key}.json"


class LoadStatus(str, enum.Enum):
    RESTORED = "restored"
    ABSENT = "absent"


@dataclass
class LoadResult:
    status: LoadStatus
    state: EconomyState | None = None

    @property
    def restored(self) -> bool:
        return self.status is LoadStatus.RESTORED


class PersistenceStore:
    """Saves and restores ``EconomyState`` under one versioned key."""

    def __init__(self, store: KeyValueStore, key: str) -> None:
        self._store = store
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def save(self, state: EconomyState) -> None:
        self._store.set(self._key, state.to_saved().model_dump_json())

    def load(self, exchange_rate: float) -> LoadResult:
        """Read the save, if any.

        A missing key yields ``ABSENT``.  A malformed record is purged,
        logged, and also yields ``ABSENT`` so the caller falls back to
        defaults.
        """
        raw = self._store.get(self._key)
        if raw is None:
            return LoadResult(status=LoadStatus.ABSENT)

        try:
            saved = SavedState.model_validate_json(raw)
        except (ValidationError, ValueError):
            logger.exception("Failed to load state from '%s'; purging it.", self._key)
            self.purge()
            return LoadResult(status=LoadStatus.ABSENT)

        logger.info(
            "Restored save '%s': cash=$%.2f, %d symbol(s).",
            self._key,
            saved.cash,
            len(saved.stocks),
        )
        return LoadResult(
            status=LoadStatus.RESTORED,
            state=EconomyState.from_saved(saved, exchange_rate),
        )

    def purge(self) -> None:
        self._store.remove(self._key)

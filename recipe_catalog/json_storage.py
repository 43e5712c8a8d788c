from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import AbstractSet, Any, List, Optional

from .errors import StorageError
from .models import Recipe, RemovalResult
from .storage import RecipeRepository


logger = logging.getLogger(__name__)

DEFAULT_DATA_FILENAME = "recipes.json"


class JsonRecipeStorage(RecipeRepository):
    """Recipe storage backed by a single pretty-printed JSON array file.

    The file is re-read on every call. Writes go to a temporary file in the
    same directory which is then renamed over the catalog, so readers never
    see a half-written array. Mutations made through one instance are
    serialised by a lock; separate processes still race and the last rename
    wins.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._write_lock = threading.Lock()

    @classmethod
    def from_env(cls, public_dir: Path | str) -> "JsonRecipeStorage":
        """Build a storage instance from environment variables."""

        override = os.environ.get("RECIPES_FILE")
        if override:
            return cls(Path(override))
        return cls(Path(public_dir) / "data" / DEFAULT_DATA_FILENAME)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> List[Recipe]:
        return [Recipe.from_dict(item) for item in self._read_entries() if isinstance(item, dict)]

    def append(self, entry: Recipe) -> Recipe:
        with self._write_lock:
            entries = self._read_entries()
            entries.append(entry.to_dict())
            self._write_entries(entries)
        return entry

    def remove_by_indices(self, indices: AbstractSet[int]) -> RemovalResult:
        with self._write_lock:
            entries = self._read_entries()
            kept = [item for position, item in enumerate(entries) if position not in indices]
            self._write_entries(kept)
        return RemovalResult(removed=len(entries) - len(kept), remaining=len(kept))

    def _read_entries(self) -> List[Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read catalog %s: %s", self._path, exc)
            return []

        try:
            data = json.loads(raw)
        except (ValueError, RecursionError):
            logger.warning("Catalog %s is not valid JSON; treating it as empty.", self._path)
            return []

        if not isinstance(data, list):
            logger.warning("Catalog %s does not hold a JSON array; treating it as empty.", self._path)
            return []
        return data

    def _write_entries(self, entries: List[Any]) -> None:
        payload = json.dumps(entries, indent=2, ensure_ascii=False)
        tmp_name: Optional[str] = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed to write catalog {self._path}: {exc}") from exc


__all__ = ["DEFAULT_DATA_FILENAME", "JsonRecipeStorage"]

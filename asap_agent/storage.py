"""Durable key/value backends for the response cache and chat history.

Every backend stores opaque text blobs under string keys and raises
``StorageError`` on failure. Callers decide how to degrade; backends never
swallow errors themselves.
"""

import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from asap_agent import models
from asap_agent.config import CACHE_BACKEND, CACHE_DIR, DATABASE_URL
from asap_agent.exceptions import StorageError


class CacheStorage(Protocol):
    def load(self, key: str) -> Optional[str]: ...

    def save(self, key: str, blob: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage; contents are lost on restart."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def load(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def save(self, key: str, blob: str) -> None:
        self._data[key] = blob

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileStorage:
    """One JSON file per key under ``directory``."""

    def __init__(self, directory: str = CACHE_DIR):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        # Session ids end up in keys, keep file names flat and safe
        safe = "".join(c if c.isalnum() or c in "-_." else "_" for c in key)
        return self.directory / f"{safe}.json"

    def load(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def save(self, key: str, blob: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                fp.write(blob)
            os.replace(tmp_name, path)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e


class SQLStorage:
    """Key/value rows in the ``kv_store`` table of ``database_url``."""

    def __init__(self, database_url: str = DATABASE_URL):
        self.engine = create_engine(database_url)
        self.SessionLocal = sessionmaker(bind=self.engine)
        try:
            models.Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to initialise kv_store: {e}") from e

    def load(self, key: str) -> Optional[str]:
        try:
            with self.SessionLocal() as db:
                row = db.get(models.KeyValue, key)
                return row.value if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    def save(self, key: str, blob: str) -> None:
        try:
            with self.SessionLocal() as db:
                row = db.get(models.KeyValue, key)
                if row:
                    row.value = blob
                else:
                    db.add(models.KeyValue(key=key, value=blob))
                db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            with self.SessionLocal() as db:
                row = db.get(models.KeyValue, key)
                if row:
                    db.delete(row)
                    db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e


def build_storage(backend: str = CACHE_BACKEND) -> CacheStorage:
    """Create the storage backend named by ``CACHE_BACKEND``."""
    if backend == "memory":
        return MemoryStorage()
    if backend == "file":
        return FileStorage(CACHE_DIR)
    if backend == "sql":
        return SQLStorage(DATABASE_URL)
    raise ValueError(f"Unknown CACHE_BACKEND: {backend!r} (expected memory, file or sql)")

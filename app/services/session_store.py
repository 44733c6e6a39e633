from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import anyio.to_thread
from pymongo.errors import PyMongoError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.session_blob import SessionBlob


logger = logging.getLogger(__name__)


class StoreIOError(Exception):
    """Ошибка хранилища сессий (диск, база, сеть)."""
    pass


class BlobStore(Protocol):
    async def get(self, key: str) -> Optional[bytes]: ...

    async def set(self, key: str, value: bytes) -> None: ...

    async def clear(self, key: str) -> None: ...


class MemoryBlobStore:
    def __init__(self) -> None:
        self._data: Dict[str, bytes] = {}

    async def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    async def clear(self, key: str) -> None:
        self._data.pop(key, None)


class FileBlobStore:
    """Один файл на ключ. Запись через временный файл + os.replace.

    Дисковые операции уходят в рабочий поток, чтобы не держать event loop.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in key)
        return self.directory / f"{safe}.json"

    def _read_sync(self, path: Path) -> Optional[bytes]:
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StoreIOError(f"read {path}: {e}") from e

    def _write_sync(self, path: Path, value: bytes) -> None:
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-", suffix=".json")
            with os.fdopen(fd, "wb") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreIOError(f"write {path}: {e}") from e

    def _remove_sync(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StoreIOError(f"remove {path}: {e}") from e

    async def get(self, key: str) -> Optional[bytes]:
        return await anyio.to_thread.run_sync(self._read_sync, self._path(key))

    async def set(self, key: str, value: bytes) -> None:
        await anyio.to_thread.run_sync(self._write_sync, self._path(key), bytes(value))

    async def clear(self, key: str) -> None:
        await anyio.to_thread.run_sync(self._remove_sync, self._path(key))


class SqlBlobStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get(self, key: str) -> Optional[bytes]:
        try:
            async with self.session_factory() as session:
                return await session.scalar(
                    select(SessionBlob.payload).where(SessionBlob.key == key)
                )
        except SQLAlchemyError as e:
            raise StoreIOError(f"select {key}: {e}") from e

    async def set(self, key: str, value: bytes) -> None:
        try:
            async with self.session_factory() as session:
                row = await session.get(SessionBlob, key)
                if row is None:
                    session.add(SessionBlob(key=key, payload=value, updated_at=datetime.utcnow()))
                else:
                    row.payload = value
                    row.updated_at = datetime.utcnow()
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreIOError(f"upsert {key}: {e}") from e

    async def clear(self, key: str) -> None:
        try:
            async with self.session_factory() as session:
                await session.execute(delete(SessionBlob).where(SessionBlob.key == key))
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreIOError(f"delete {key}: {e}") from e


class MongoBlobStore:
    """Коллекция motor, документ {_id: key, payload: bytes}."""

    def __init__(self, collection: Any):
        self.collection = collection

    async def get(self, key: str) -> Optional[bytes]:
        try:
            doc = await self.collection.find_one({"_id": key})
        except PyMongoError as e:
            raise StoreIOError(f"find {key}: {e}") from e
        if not doc:
            return None
        return bytes(doc["payload"])

    async def set(self, key: str, value: bytes) -> None:
        try:
            await self.collection.update_one(
                {"_id": key},
                {"$set": {"payload": value, "updated_at": datetime.utcnow()}},
                upsert=True,
            )
        except PyMongoError as e:
            raise StoreIOError(f"update {key}: {e}") from e

    async def clear(self, key: str) -> None:
        try:
            await self.collection.delete_one({"_id": key})
        except PyMongoError as e:
            raise StoreIOError(f"delete {key}: {e}") from e


def build_blob_store(settings: Any) -> BlobStore:
    kind = (settings.SESSION_STORE or "file").lower()

    if kind == "memory":
        return MemoryBlobStore()

    if kind == "file":
        return FileBlobStore(settings.SESSION_DIR)

    if kind == "sql":
        from app.core.db import get_session_factory

        return SqlBlobStore(get_session_factory())

    if kind == "mongo":
        from app.core.mongo import get_sessions_collection

        return MongoBlobStore(get_sessions_collection())

    raise ValueError(f"Unknown SESSION_STORE {kind!r}")

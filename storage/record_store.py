"""
JSON file record store.

Each named collection is an ordered JSON array of flat records kept in
``<data_dir>/<name>.json``. Every read-modify-write cycle loads the whole
collection, mutates it in memory and replaces the whole file, so the store
is only suitable for small collections.
"""

import asyncio
import json
import os
import re
import tempfile
from contextlib import asynccontextmanager, suppress
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, List, TypeVar, Union

import anyio
import structlog

from utilities.exceptions import StorageCorruptError, StorageUnavailableError

logger = structlog.get_logger(__name__)

Record = Dict[str, Any]
T = TypeVar("T")

_COLLECTION_NAME = re.compile(r"^[A-Za-z0-9_-]+$")


class RecordStore:
    """
    Async store for named JSON collections.

    Blocking file access runs in a worker thread. ``modify`` cycles on the
    same collection are serialized by a per-collection lock held by this
    instance; bare ``save_all`` calls are last-writer-wins.
    """

    def __init__(self, data_dir: Union[str, Path]):
        """
        Initialize the record store.

        Args:
            data_dir: Directory holding one JSON file per collection
        """
        self.data_dir = Path(data_dir)
        self._locks: Dict[str, asyncio.Lock] = {}

    def collection_path(self, collection_name: str) -> Path:
        """Return the backing file of a collection."""
        if not _COLLECTION_NAME.match(collection_name or ""):
            raise ValueError(f"Invalid collection name: {collection_name!r}")
        return self.data_dir / f"{collection_name}.json"

    async def initialize(self, collection_name: str) -> None:
        """
        Ensure the data directory and the collection file exist.

        An existing file is never overwritten.
        """
        path = self.collection_path(collection_name)
        created = await anyio.to_thread.run_sync(self._initialize_sync, path)
        if created:
            logger.info("Created empty collection", collection=collection_name, path=str(path))
        else:
            logger.debug("Collection already present", collection=collection_name)

    async def load_all(self, collection_name: str) -> List[Record]:
        """
        Load every record of a collection.

        Raises:
            StorageCorruptError: File content is not a JSON array
            StorageUnavailableError: File cannot be read
        """
        path = self.collection_path(collection_name)
        return await anyio.to_thread.run_sync(self._read_sync, path)

    async def save_all(self, collection_name: str, records: List[Record]) -> None:
        """
        Atomically replace the content of a collection.

        Raises:
            StorageUnavailableError: File cannot be written; prior content is kept
        """
        path = self.collection_path(collection_name)
        await anyio.to_thread.run_sync(self._write_sync, path, list(records))
        logger.debug("Collection saved", collection=collection_name, count=len(records))

    @asynccontextmanager
    async def exclusive(self, collection_name: str) -> AsyncIterator[None]:
        """Hold the collection's lock for the duration of the block."""
        lock = self._locks.setdefault(collection_name, asyncio.Lock())
        async with lock:
            yield

    async def modify(self, collection_name: str, mutate: Callable[[List[Record]], T]) -> T:
        """
        Run one serialized load -> mutate -> save cycle.

        ``mutate`` changes the list in place and returns the cycle's result.
        When it raises, nothing is written.

        Args:
            collection_name: Collection to modify
            mutate: Callback receiving the loaded records

        Returns:
            Whatever ``mutate`` returned
        """
        async with self.exclusive(collection_name):
            records = await self.load_all(collection_name)
            result = mutate(records)
            await self.save_all(collection_name, records)
            return result

    def _initialize_sync(self, path: Path) -> bool:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if path.exists():
                return False
            self._write_sync(path, [])
            return True
        except OSError as e:
            logger.error("Failed to initialize collection", path=str(path), error=str(e))
            raise StorageUnavailableError(f"Cannot initialize {path}: {e}") from e

    def _read_sync(self, path: Path) -> List[Record]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error("Collection file is corrupt", path=str(path), error=str(e))
            raise StorageCorruptError(f"Malformed JSON in {path}: {e}") from e
        except OSError as e:
            logger.error("Collection file is unreadable", path=str(path), error=str(e))
            raise StorageUnavailableError(f"Cannot read {path}: {e}") from e

        if not isinstance(data, list):
            logger.error("Collection file is not a JSON array", path=str(path))
            raise StorageCorruptError(f"Expected a JSON array in {path}")
        return data

    def _write_sync(self, path: Path, records: List[Record]) -> None:
        temp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w", dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp",
                delete=False, encoding="utf-8"
            ) as tf:
                temp_path = Path(tf.name)
                json.dump(records, tf, indent=2, ensure_ascii=False)
                tf.flush()
                os.fsync(tf.fileno())
            os.replace(temp_path, path)
        except (OSError, TypeError, ValueError) as e:
            if temp_path is not None:
                with suppress(OSError):
                    temp_path.unlink(missing_ok=True)
            logger.error("Failed to save collection", path=str(path), error=str(e))
            raise StorageUnavailableError(f"Cannot write {path}: {e}") from e


def utc_timestamp() -> str:
    """Current UTC time as an ISO-8601 string, the format records store."""
    return datetime.now(timezone.utc).isoformat()

"""
Flat-file record store.

Each collection is one pretty-printed JSON document under the data
directory. Reads return the whole document; writes rewrite it entirely.
"""

import asyncio
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

from mortgage_chat.errors import CorruptDataError, PersistenceError

logger = logging.getLogger(__name__)

Document = Union[Dict[str, Any], List[Any]]


class CollectionKind(str, Enum):
    """Persisted collections and their backing file names."""
    USERS = "users"
    INTERACTIONS = "interactions"
    FAQS = "faqs"

    @property
    def filename(self) -> str:
        return f"{self.value}.json"

    def empty(self) -> Document:
        """Default document for a missing or empty file."""
        return {} if self is CollectionKind.USERS else []


class RecordStore:
    """
    Whole-document load/save over JSON files.

    Without serialize_writes there is no locking: two concurrent
    read-modify-write cycles on one collection race and the last save wins.
    With serialize_writes, append() and update() hold a per-collection lock
    for the whole cycle.
    """

    def __init__(self, data_dir: Union[str, Path], serialize_writes: bool = False):
        self.data_dir = Path(data_dir)
        self.serialize_writes = serialize_writes
        self._locks: Dict[CollectionKind, asyncio.Lock] = {}

        logger.info(
            f"RecordStore initialized: data_dir={self.data_dir}, "
            f"serialize_writes={serialize_writes}"
        )

    def path_for(self, kind: CollectionKind) -> Path:
        return self.data_dir / kind.filename

    async def load(self, kind: CollectionKind) -> Document:
        """
        Load a whole collection.

        Returns {} for users and [] for list collections when the file is
        missing or blank.

        Raises:
            CorruptDataError: content is not valid JSON of the right shape
        """
        return await asyncio.to_thread(self._read, kind)

    async def save(self, kind: CollectionKind, document: Document) -> None:
        """
        Overwrite a whole collection, creating the data directory if needed.

        Raises:
            PersistenceError: the file could not be written
        """
        await asyncio.to_thread(self._write, kind, document)

    async def append(self, kind: CollectionKind, item: Any) -> None:
        """Append one item to a list collection."""
        def _append(document: List[Any]) -> None:
            document.append(item)

        await self.update(kind, _append)

    async def update(self, kind: CollectionKind, mutator: Callable[[Document], Any]) -> Any:
        """
        Load, mutate in place, save. Returns whatever the mutator returns.

        The save is skipped if the mutator raises.
        """
        if not self.serialize_writes:
            return await self._read_modify_write(kind, mutator)

        async with self._lock_for(kind):
            return await self._read_modify_write(kind, mutator)

    async def _read_modify_write(self, kind: CollectionKind, mutator: Callable[[Document], Any]) -> Any:
        document = await self.load(kind)
        result = mutator(document)
        await self.save(kind, document)
        return result

    def _lock_for(self, kind: CollectionKind) -> asyncio.Lock:
        lock = self._locks.get(kind)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[kind] = lock
        return lock

    def _read(self, kind: CollectionKind) -> Document:
        path = self.path_for(kind)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"{path} missing, using empty {kind.value}")
            return kind.empty()
        except UnicodeDecodeError as e:
            logger.error(f"Undecodable {kind.value} document at {path}: {e}")
            raise CorruptDataError(f"{kind.value} data is not valid UTF-8") from e
        except OSError as e:
            raise PersistenceError(f"Failed to read {kind.value}: {e}") from e

        if not raw.strip():
            return kind.empty()

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt {kind.value} document at {path}: {e}")
            raise CorruptDataError(f"{kind.value} data is corrupt: {e}") from e

        if not isinstance(document, type(kind.empty())):
            logger.error(
                f"Unexpected {kind.value} document type at {path}: {type(document).__name__}"
            )
            raise CorruptDataError(
                f"{kind.value} data has unexpected type {type(document).__name__}"
            )
        return document

    def _write(self, kind: CollectionKind, document: Document) -> None:
        path = self.path_for(kind)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write {kind.value} to {path}: {e}")
            raise PersistenceError(f"Failed to save {kind.value}: {e}") from e
        logger.debug(f"Saved {kind.value} to {path}")

# src/slashkeeper/storage/state_cache.py
from typing import Any, Dict, Iterator, Optional, Set, Tuple

from .database import Database

class StateCache:
    """Buffers writes over a Database until the block is committed.

    Reads see buffered writes first. commit() flushes everything through a
    single batch_write so a block's state lands all at once; discard()
    drops the buffer after a failed block.
    """

    def __init__(self, db: Database):
        self.db = db
        self._writes: Dict[str, Any] = {}
        self._deletes: Set[str] = set()

    def get(self, key: str) -> Optional[Any]:
        if key in self._writes:
            return self._writes[key]
        if key in self._deletes:
            return None
        return self.db.get(key)

    def put(self, key: str, value: Any) -> None:
        self._deletes.discard(key)
        self._writes[key] = value

    def delete(self, key: str) -> None:
        self._writes.pop(key, None)
        self._deletes.add(key)

    def iter_prefix(self, prefix: str) -> Iterator[Tuple[str, Any]]:
        merged = {
            key: value
            for key, value in self.db.iter_prefix(prefix)
            if key not in self._deletes
        }
        for key, value in self._writes.items():
            if key.startswith(prefix):
                merged[key] = value
        for key in sorted(merged):
            yield key, merged[key]

    @property
    def dirty(self) -> bool:
        return bool(self._writes or self._deletes)

    def commit(self) -> None:
        """Flush buffered writes and deletes atomically"""
        if self.dirty:
            self.db.batch_write(self._writes, self._deletes)
        self.discard()

    def discard(self) -> None:
        self._writes = {}
        self._deletes = set()

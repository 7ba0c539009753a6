# -*- encoding: utf-8 -*-
"""
IndexedRegistry - Generic base class for append-only indexed registries.

Provides the storage infrastructure shared by registries whose records are
created once and never changed:
- Thread-safe primary store (key -> object), in insertion order
- Named secondary indexes (index key -> ordered list of primary keys)
- All-or-nothing insertion into the primary store and every index

Subclasses declare their indexes and how to derive each index key from a
record, and build their domain operations on _insert() and _lookup().

Usage:
    class MyRegistry(IndexedRegistry[bytes, MyRecord]):
        INDEXES = ("owner", "kind")

        def _index_keys(self, obj):
            return {"owner": obj.owner, "kind": obj.kind}

        def add(self, record):
            with self._lock:
                if record.key in self._entities:
                    raise KeyError(record.key)
                self._insert(record.key, record)
            return record
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import (
    Callable,
    Dict,
    Generic,
    Hashable,
    List,
    Optional,
    Tuple,
    TypeVar,
)

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


class IndexedRegistry(ABC, Generic[K, T]):
    """
    Lean base class for append-only registries with secondary indexes.

    There is no update or delete: index buckets only ever grow, so an id
    appears in each bucket at most once and in insertion order.
    """

    INDEXES: Tuple[str, ...] = ()

    def __init__(self):
        self._entities: Dict[K, T] = {}
        self._indexes: Dict[str, Dict[Hashable, List[K]]] = {
            name: {} for name in self.INDEXES
        }
        # Re-entrant so callbacks made while holding the lock can read back.
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Index keys
    # ------------------------------------------------------------------

    @abstractmethod
    def _index_keys(self, obj: T) -> Dict[str, Hashable]:
        """Map each name in INDEXES to obj's key in that index."""

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def _insert(
        self,
        key: K,
        obj: T,
        on_commit: Optional[Callable[[T], None]] = None,
    ) -> None:
        """
        Insert obj into the primary store and every index as one unit.

        on_commit runs after the inserts; if it raises, every insert is
        undone before the error propagates. Caller must check for key
        collisions first (under the same lock hold, for atomicity).
        """
        index_keys = self._index_keys(obj)
        missing = set(self.INDEXES) - set(index_keys)
        if missing:
            raise ValueError(f"Missing index keys: {sorted(missing)}")

        with self._lock:
            self._entities[key] = obj
            for name in self.INDEXES:
                self._indexes[name].setdefault(index_keys[name], []).append(key)

            if on_commit is None:
                return
            try:
                on_commit(obj)
            except Exception:
                self._rollback(key, index_keys)
                raise

    def _rollback(self, key: K, index_keys: Dict[str, Hashable]) -> None:
        """Undo the most recent _insert() of key. Called under lock."""
        del self._entities[key]
        for name in self.INDEXES:
            bucket = self._indexes[name][index_keys[name]]
            bucket.remove(key)
            if not bucket:
                del self._indexes[name][index_keys[name]]
        logger.debug(f"Rolled back {self._entity_label} insert")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _get(self, key: K) -> Optional[T]:
        with self._lock:
            return self._entities.get(key)

    def _lookup(self, index: str, index_key: Hashable) -> List[K]:
        """Primary keys under index_key, oldest first. Empty when unused."""
        with self._lock:
            return list(self._indexes[index].get(index_key, ()))

    def list_all(self) -> List[T]:
        """All records in insertion order."""
        with self._lock:
            return list(self._entities.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entities)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entities

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def _entity_label(self) -> str:
        """Label for log messages (e.g. 'credential')."""
        name = type(self).__name__
        if name.endswith("Registry") and len(name) > len("Registry"):
            return name[: -len("Registry")].lower()
        return name.lower()

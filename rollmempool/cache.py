"""Caches of seen raw transactions."""

from __future__ import annotations

import abc
import threading
from collections import OrderedDict
from typing import List

from .abci import tx_key


class TxCache(abc.ABC):
    """A set of seen transactions, supporting push, removal and presence checks."""

    @abc.abstractmethod
    def reset(self) -> None:
        """Empty the cache."""

    @abc.abstractmethod
    def push(self, tx: bytes) -> bool:
        """Add tx; return True if it was not present before."""

    @abc.abstractmethod
    def remove(self, tx: bytes) -> None:
        """Remove tx if present."""

    @abc.abstractmethod
    def has(self, tx: bytes) -> bool:
        """Report whether tx is present without counting it as an access."""


class LRUTxCache(TxCache):
    """A thread-safe LRU cache holding the keys of raw transactions."""

    def __init__(self, size: int) -> None:
        self.size = size
        self._lock = threading.Lock()
        self._entries: "OrderedDict[bytes, None]" = OrderedDict()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> List[bytes]:
        """Return the cached keys, least recently used first."""
        with self._lock:
            return list(self._entries)

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def push(self, tx: bytes) -> bool:
        key = tx_key(tx)
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                return False
            if len(self._entries) >= self.size and self._entries:
                self._entries.popitem(last=False)
            self._entries[key] = None
            return True

    def remove(self, tx: bytes) -> None:
        with self._lock:
            self._entries.pop(tx_key(tx), None)

    def has(self, tx: bytes) -> bool:
        with self._lock:
            return tx_key(tx) in self._entries


class NopTxCache(TxCache):
    """A cache that remembers nothing."""

    def reset(self) -> None:
        return None

    def push(self, tx: bytes) -> bool:
        return True

    def remove(self, tx: bytes) -> None:
        return None

    def has(self, tx: bytes) -> bool:
        return False
"""The indexed collection of valid transactions held by the mempool."""

from __future__ import annotations

import threading
import time
from typing import Dict, Iterator, List, Optional

from .clist import CElement, CList
from .errors import TxNotFoundError
from .wrapped import WrappedTx

_UINT64 = 1 << 64


class TxStore:
    """Transactions in arrival order, indexed by key and by sender.

    The store does no locking of its own beyond its byte counter; callers
    serialise modifications.
    """

    def __init__(self) -> None:
        self._txs = CList()
        self._by_key: Dict[bytes, CElement] = {}
        self._by_sender: Dict[str, CElement] = {}
        self._bytes = 0
        self._bytes_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._txs)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (bytes, bytearray)):
            return False
        return bytes(key) in self._by_key

    def __iter__(self) -> Iterator[WrappedTx]:
        """Yield the transactions in order of arrival."""
        for element in self._txs:
            yield element.value

    def size_bytes(self) -> int:
        """Return the total size in bytes of all stored transactions."""
        with self._bytes_lock:
            return self._bytes

    def _add_bytes(self, delta: int) -> None:
        with self._bytes_lock:
            self._bytes += delta

    def get(self, key: bytes) -> Optional[WrappedTx]:
        """Return the transaction with the given key, or None."""
        element = self._by_key.get(bytes(key))
        return None if element is None else element.value

    def by_sender(self, sender: str) -> Optional[WrappedTx]:
        """Return the transaction assigned to sender, or None.

        The empty sender is never indexed.
        """
        if not sender:
            return None
        element = self._by_sender.get(sender)
        return None if element is None else element.value

    def insert(self, wtx: WrappedTx) -> CElement:
        """Append wtx and index it; raise ValueError if its key is already stored."""
        if wtx.key in self._by_key:
            raise ValueError(f"transaction {wtx.key.hex()} is already stored")
        element = self._txs.push_back(wtx)
        self._by_key[wtx.key] = element
        if wtx.sender:
            self._by_sender[wtx.sender] = element
        self._add_bytes(wtx.size())
        return element

    def remove_by_key(self, key: bytes) -> WrappedTx:
        """Remove and return the transaction with the given key.

        Raises TxNotFoundError if there is none.
        """
        element = self._by_key.get(bytes(key))
        if element is None:
            raise TxNotFoundError(bytes(key))
        return self.remove_element(element)

    def remove_element(self, element: CElement) -> WrappedTx:
        """Remove the given list element and its indexes; return its transaction."""
        wtx: WrappedTx = element.value
        self._by_key.pop(wtx.key, None)
        if self._by_sender.get(wtx.sender) is element:
            del self._by_sender[wtx.sender]
        self._txs.remove(element)
        element.detach_prev()
        element.detach_next()
        self._add_bytes(-wtx.size())
        return wtx

    def clear(self) -> None:
        """Remove every transaction."""
        for element in list(self._txs):
            self.remove_element(element)

    def sorted_entries(self) -> List[WrappedTx]:
        """Return all transactions, highest priority first, ties by earlier arrival."""
        return sorted(self, key=lambda w: (-w.priority, w.arrival))

    def purge_expired(
        self,
        block_height: int,
        ttl_num_blocks: int,
        ttl_duration: float,
        now: Optional[float] = None,
    ) -> List[WrappedTx]:
        """Remove transactions past their block or time limit; return the removed ones.

        A limit of zero disables it. ``now`` defaults to the current time.
        """
        if ttl_num_blocks == 0 and ttl_duration == 0:
            return []
        if now is None:
            now = time.time()
        removed = []
        for element in list(self._txs):
            wtx: WrappedTx = element.value
            # Heights are unsigned; a height below the tx's wraps around.
            age = (block_height - wtx.height) % _UINT64
            if ttl_num_blocks > 0 and age > ttl_num_blocks:
                removed.append(self.remove_element(element))
            elif ttl_duration > 0 and now - wtx.timestamp > ttl_duration:
                removed.append(self.remove_element(element))
        return removed

    def front(self) -> Optional[CElement]:
        """Return the first list element, or None if the store is empty."""
        return self._txs.front()

    def wait_chan(self) -> threading.Event:
        """Return an event that is set once the store holds a transaction."""
        return self._txs.wait_chan()
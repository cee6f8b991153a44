"""Transactions as held by the mempool, with their application metadata."""

from __future__ import annotations

import itertools
import threading
import time
from dataclasses import dataclass, field
from typing import Set, Tuple

from .abci import tx_key

_arrivals = itertools.count()


@dataclass(eq=False)
class WrappedTx:
    """A raw transaction together with the metadata used to index it.

    ``height`` is the block height at which the transaction was first checked
    and ``timestamp`` the wall-clock time (seconds) at which it arrived; both
    drive expiry. ``gas_wanted``, ``priority`` and ``sender`` are assigned by
    the application.
    """

    tx: bytes
    height: int = 0
    timestamp: float = field(default_factory=time.time)
    gas_wanted: int = 0
    priority: int = 0
    sender: str = ""
    key: bytes = field(init=False, default=b"")
    sequence: int = field(init=False, default_factory=lambda: next(_arrivals))
    peers: Set[int] = field(init=False, default_factory=set, repr=False)
    _lock: threading.Lock = field(
        init=False, default_factory=threading.Lock, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        self.tx = bytes(self.tx)
        self.key = tx_key(self.tx)

    @property
    def arrival(self) -> Tuple[float, int]:
        """A sort key ordering transactions by time of arrival."""
        return (self.timestamp, self.sequence)

    def size(self) -> int:
        """Return the size of the raw transaction in bytes."""
        return len(self.tx)

    def set_peer(self, peer_id: int) -> None:
        """Record peer_id as one of the senders of this transaction."""
        with self._lock:
            self.peers.add(peer_id)

    def has_peer(self, peer_id: int) -> bool:
        """Report whether peer_id has sent this transaction."""
        with self._lock:
            return peer_id in self.peers
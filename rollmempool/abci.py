"""Application-facing message types and the mempool's connection to the application."""

from __future__ import annotations

import enum
import hashlib
import threading
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

CODE_TYPE_OK = 0
TX_KEY_SIZE = hashlib.sha256().digest_size
_MAX_PEER_ID = 0xFFFF


class CheckTxType(enum.IntEnum):
    """Whether a CheckTx call is for a new transaction or a recheck."""

    NEW = 0
    RECHECK = 1


@dataclass(frozen=True)
class RequestCheckTx:
    """A request asking the application to validate a transaction."""

    tx: bytes
    type: CheckTxType = CheckTxType.NEW


@dataclass
class ResponseCheckTx:
    """The application's verdict on a transaction."""

    code: int = CODE_TYPE_OK
    data: bytes = b""
    log: str = ""
    gas_wanted: int = 0
    gas_used: int = 0
    priority: int = 0
    sender: str = ""
    mempool_error: str = ""


@dataclass
class ResponseDeliverTx:
    """The result of executing a committed transaction."""

    code: int = CODE_TYPE_OK
    data: bytes = b""
    log: str = ""
    gas_wanted: int = 0
    gas_used: int = 0


@dataclass(frozen=True)
class TxInfo:
    """Parameters passed along when a transaction is offered to the mempool."""

    sender_id: int = 0
    sender_p2p_id: str = ""

    def __post_init__(self) -> None:
        if not 0 <= self.sender_id <= _MAX_PEER_ID:
            raise ValueError(f"sender id {self.sender_id} does not fit in 16 bits")


@dataclass
class MempoolConfig:
    """Limits and behaviour switches of a mempool."""

    recheck: bool = True
    broadcast: bool = True
    size: int = 5000
    max_txs_bytes: int = 1024 * 1024 * 1024
    cache_size: int = 10000
    keep_invalid_txs_in_cache: bool = False
    max_tx_bytes: int = 1024 * 1024
    ttl_duration: float = 0.0
    ttl_num_blocks: int = 0


def tx_key(tx: bytes) -> bytes:
    """Return the fixed-length key (SHA-256 digest) identifying a transaction."""
    return hashlib.sha256(bytes(tx)).digest()


def _uvarint_len(value: int) -> int:
    length = 1
    while value >= 0x80:
        value >>= 7
        length += 1
    return length


def compute_proto_size_for_txs(txs: Iterable[bytes]) -> int:
    """Return the encoded size of the transactions as a repeated bytes field."""
    return sum(1 + _uvarint_len(len(tx)) + len(tx) for tx in txs)


CheckTxHandler = Callable[[RequestCheckTx], ResponseCheckTx]


class AppConnMempool:
    """In-process connection to an application's CheckTx handler.

    Calls are serialised; a failure of the handler is remembered as the
    connection error and reported by later flushes.
    """

    def __init__(self, handler: CheckTxHandler) -> None:
        self._handler = handler
        self._lock = threading.Lock()
        self._error: Optional[BaseException] = None

    def error(self) -> Optional[BaseException]:
        """Return the error that broke the connection, if any."""
        return self._error

    def check_tx_sync(self, request: RequestCheckTx) -> ResponseCheckTx:
        """Run CheckTx on the application and return its response."""
        with self._lock:
            try:
                return self._handler(request)
            except Exception as exc:
                self._error = exc
                raise

    def flush_sync(self) -> None:
        """Block until every in-flight request has completed."""
        with self._lock:
            if self._error is not None:
                raise self._error

    def flush_async(self) -> threading.Event:
        """Start a flush and return an event that is set once it completes."""
        done = threading.Event()

        def _flush() -> None:
            with self._lock:
                done.set()

        threading.Thread(target=_flush, daemon=True).start()
        return done
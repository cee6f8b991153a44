"""Exceptions raised by the mempool."""

from __future__ import annotations

from typing import Optional


class MempoolError(Exception):
    """Base class of all mempool errors."""


class TxInCacheError(MempoolError):
    """The transaction has been seen before."""

    def __init__(self) -> None:
        super().__init__("tx already exists in cache")


class TxTooLargeError(MempoolError):
    """The transaction is too big to be accepted."""

    def __init__(self, max_bytes: int, actual: int) -> None:
        self.max_bytes = max_bytes
        self.actual = actual
        super().__init__(f"Tx too large. Max size is {max_bytes}, but got {actual}")


class MempoolIsFullError(MempoolError):
    """The mempool cannot take more transactions."""

    def __init__(self, num_txs: int, max_txs: int, txs_bytes: int, max_txs_bytes: int) -> None:
        self.num_txs = num_txs
        self.max_txs = max_txs
        self.txs_bytes = txs_bytes
        self.max_txs_bytes = max_txs_bytes
        super().__init__(
            f"mempool is full: number of txs {num_txs} (max: {max_txs}), "
            f"total txs bytes {txs_bytes} (max: {max_txs_bytes})"
        )


class PreCheckError(MempoolError):
    """The transaction failed a pre-check filter."""

    def __init__(self, reason: BaseException) -> None:
        self.reason = reason
        super().__init__(str(reason))
        self.__cause__ = reason


class TxNotFoundError(MempoolError, KeyError):
    """No transaction with the given key is in the mempool."""

    def __init__(self, key: bytes) -> None:
        self.key = key
        super().__init__(f"transaction {bytes(key).hex()} not found")

    def __str__(self) -> str:
        return str(self.args[0])


def is_pre_check_error(err: Optional[BaseException]) -> bool:
    """Report whether err, or an error it was raised from, is a PreCheckError."""
    seen = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, PreCheckError):
            return True
        seen.add(id(err))
        err = err.__cause__ or err.__context__
    return False
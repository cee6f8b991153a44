"""A priority mempool that validates transactions against the application."""

from __future__ import annotations

import json
import logging
import os
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

from .abci import (
    CODE_TYPE_OK,
    AppConnMempool,
    CheckTxType,
    MempoolConfig,
    RequestCheckTx,
    ResponseCheckTx,
    ResponseDeliverTx,
    TxInfo,
    compute_proto_size_for_txs,
    tx_key,
)
from .cache import LRUTxCache, NopTxCache, TxCache
from .checks import PostCheckFunc, PreCheckFunc
from .clist import CElement
from .errors import (
    MempoolIsFullError,
    PreCheckError,
    TxInCacheError,
    TxNotFoundError,
    TxTooLargeError,
)
from .eviction import select_victims
from .metrics import Metrics, nop_metrics
from .txstore import TxStore
from .wrapped import WrappedTx

logger = logging.getLogger(__name__)

CheckTxCallback = Callable[[ResponseCheckTx], None]


def _hex(key: bytes) -> str:
    return key.hex().upper()


class TxMempool:
    """A mempool ordering transactions by application-assigned priority.

    Transactions are kept in order of arrival; reaping returns them by
    nonincreasing priority with ties broken by arrival. When the mempool is
    full, lower-priority transactions are evicted to make room for a new one.
    """

    def __init__(
        self,
        config: MempoolConfig,
        app_conn: AppConnMempool,
        height: int = 0,
        *,
        pre_check: Optional[PreCheckFunc] = None,
        post_check: Optional[PostCheckFunc] = None,
        metrics: Optional[Metrics] = None,
    ) -> None:
        self.config = config
        self.app_conn = app_conn
        self.metrics = metrics if metrics is not None else nop_metrics()
        self.cache: TxCache = (
            LRUTxCache(config.cache_size) if config.cache_size > 0 else NopTxCache()
        )
        self.height = height
        self._lock = threading.RLock()
        self._store = TxStore()
        self._pre_check = pre_check
        self._post_check = post_check
        self._notified_txs_available = False
        self._txs_available: Optional[queue.Queue] = None

    # Locking -----------------------------------------------------------------

    def lock(self) -> None:
        """Take the exclusive mempool lock; the caller must release it."""
        self._lock.acquire()

    def unlock(self) -> None:
        """Release the exclusive mempool lock."""
        self._lock.release()

    def __enter__(self) -> "TxMempool":
        self.lock()
        return self

    def __exit__(self, *args) -> None:
        self.unlock()

    # Queries -----------------------------------------------------------------

    def __contains__(self, tx: object) -> bool:
        if not isinstance(tx, (bytes, bytearray, memoryview)):
            return False
        return tx_key(bytes(tx)) in self._store

    def size(self) -> int:
        """Return the number of valid transactions in the mempool."""
        return len(self._store)

    def size_bytes(self) -> int:
        """Return the total size in bytes of the valid transactions."""
        return self._store.size_bytes()

    def flush_app_conn(self) -> None:
        """Flush the application connection; the caller must hold the lock."""
        self._lock.release()
        try:
            self.app_conn.flush_sync()
        finally:
            self._lock.acquire()

    def enable_txs_available(self) -> None:
        """Start signalling, once per height, when transactions are available."""
        with self._lock:
            self._txs_available = queue.Queue(maxsize=1)

    def txs_available(self) -> Optional[queue.Queue]:
        """Return the queue receiving one item per height with transactions, if enabled."""
        return self._txs_available

    def txs_wait_chan(self) -> threading.Event:
        """Return an event set once there is a transaction to gossip."""
        return self._store.wait_chan()

    def txs_front(self) -> Optional[CElement]:
        """Return the first element of the arrival-ordered list, or None."""
        return self._store.front()

    # Adding ------------------------------------------------------------------

    def check_tx(
        self,
        tx: bytes,
        callback: Optional[CheckTxCallback] = None,
        tx_info: Optional[TxInfo] = None,
    ) -> None:
        """Validate tx with the application and add it to the mempool if it fits.

        Raises TxTooLargeError, PreCheckError, TxInCacheError, or the
        connection's error without adding tx. Otherwise the application's
        response is passed to callback, if given.
        """
        tx = bytes(tx)
        info = tx_info if tx_info is not None else TxInfo()

        with self._lock:
            if len(tx) > self.config.max_tx_bytes:
                raise TxTooLargeError(self.config.max_tx_bytes, len(tx))
            if self._pre_check is not None:
                try:
                    self._pre_check(tx)
                except Exception as exc:
                    raise PreCheckError(exc) from exc
            conn_err = self.app_conn.error()
            if conn_err is not None:
                raise conn_err
            if not self.cache.push(tx):
                existing = self._store.get(tx_key(tx))
                if existing is not None:
                    existing.set_peer(info.sender_id)
                raise TxInCacheError()
            height = self.height

        try:
            response = self.app_conn.check_tx_sync(RequestCheckTx(tx=tx))
        except Exception:
            self.cache.remove(tx)
            raise

        wtx = WrappedTx(tx, height=height)
        wtx.set_peer(info.sender_id)
        self._add_new_transaction(wtx, response)
        if callback is not None:
            callback(response)

    def _can_add_tx(self, wtx: WrappedTx) -> None:
        num_txs = self.size()
        txs_bytes = self.size_bytes()
        if num_txs >= self.config.size or wtx.size() + txs_bytes > self.config.max_txs_bytes:
            raise MempoolIsFullError(
                num_txs, self.config.size, txs_bytes, self.config.max_txs_bytes
            )

    def _add_new_transaction(self, wtx: WrappedTx, res: ResponseCheckTx) -> None:
        with self._lock:
            err: Optional[Exception] = None
            if self._post_check is not None:
                try:
                    self._post_check(wtx.tx, res)
                except Exception as exc:
                    err = exc

            if err is not None or res.code != CODE_TYPE_OK:
                logger.debug(
                    "rejected bad transaction tx=%s code=%d post_check_err=%s",
                    _hex(wtx.key), res.code, err,
                )
                self.metrics.failed_txs.add(1)
                if not self.config.keep_invalid_txs_in_cache:
                    self.cache.remove(wtx.tx)
                if err is not None:
                    res.mempool_error = str(err)
                return

            existing = self._store.get(wtx.key)
            if existing is not None:
                for peer in wtx.peers:
                    existing.set_peer(peer)
                return

            priority = res.priority
            sender = res.sender

            if sender:
                holder = self._store.by_sender(sender)
                if holder is not None:
                    logger.debug(
                        "rejected valid incoming transaction; tx already exists for sender "
                        "tx=%s sender=%s", _hex(holder.key), sender,
                    )
                    res.mempool_error = (
                        "rejected valid incoming transaction; tx already exists for sender "
                        f"{json.dumps(sender)} ({_hex(holder.key)})"
                    )
                    self.metrics.rejected_txs.add(1)
                    return

            try:
                self._can_add_tx(wtx)
            except MempoolIsFullError as full:
                victims = select_victims(self._store, priority, wtx.size())
                if not victims:
                    self.cache.remove(wtx.tx)
                    logger.error(
                        "rejected valid incoming transaction; mempool is full tx=%s err=%s",
                        _hex(wtx.key), full,
                    )
                    res.mempool_error = (
                        f"rejected valid incoming transaction; mempool is full ({_hex(wtx.key)})"
                    )
                    self.metrics.rejected_txs.add(1)
                    return
                logger.debug(
                    "evicting lower-priority transactions new_tx=%s new_priority=%d",
                    _hex(wtx.key), priority,
                )
                for victim in victims:
                    logger.debug(
                        "evicted valid existing transaction; mempool full old_tx=%s old_priority=%d",
                        _hex(victim.key), victim.priority,
                    )
                    self._store.remove_by_key(victim.key)
                    self.cache.remove(victim.tx)
                    self.metrics.evicted_txs.add(1)

            wtx.gas_wanted = res.gas_wanted
            wtx.priority = priority
            wtx.sender = sender
            self._store.insert(wtx)

            self.metrics.tx_size_bytes.observe(wtx.size())
            self.metrics.size.set(self.size())
            logger.debug(
                "inserted new valid transaction priority=%d tx=%s height=%d num_txs=%d",
                wtx.priority, _hex(wtx.key), self.height, self.size(),
            )
            self._notify_txs_available()

    # Removing ----------------------------------------------------------------

    def remove_tx_by_key(self, key: bytes) -> None:
        """Remove the transaction with the given key; raise TxNotFoundError if absent.

        The cache is left untouched.
        """
        with self._lock:
            self._store.remove_by_key(key)

    def flush(self) -> None:
        """Empty the mempool and the cache; the height is kept."""
        with self._lock:
            self._store.clear()
            self.cache.reset()

    # Reaping -----------------------------------------------------------------

    def _sorted_entries(self) -> List[WrappedTx]:
        with self._lock:
            return self._store.sorted_entries()

    def reap_max_bytes_max_gas(self, max_bytes: int, max_gas: int) -> List[bytes]:
        """Return the highest-priority transactions within the byte and gas limits.

        A negative limit means no limit. The mempool is not modified.
        """
        total_gas = 0
        total_bytes = 0
        keep: List[bytes] = []
        for w in self._sorted_entries():
            total_gas += w.gas_wanted
            total_bytes += compute_proto_size_for_txs([w.tx])
            if (max_gas >= 0 and total_gas > max_gas) or (
                max_bytes >= 0 and total_bytes > max_bytes
            ):
                break
            keep.append(w.tx)
        return keep

    def reap_max_txs(self, max_txs: int) -> List[bytes]:
        """Return up to max_txs transactions by priority; all of them if negative."""
        entries = self._sorted_entries()
        if max_txs >= 0:
            entries = entries[:max_txs]
        return [w.tx for w in entries]

    # Block updates -----------------------------------------------------------

    def update(
        self,
        block_height: int,
        block_txs: Sequence[bytes],
        deliver_tx_responses: Sequence[ResponseDeliverTx],
        new_pre_fn: Optional[PreCheckFunc] = None,
        new_post_fn: Optional[PostCheckFunc] = None,
    ) -> None:
        """Drop committed transactions and move to block_height.

        The caller must hold the lock. Remaining transactions are rechecked
        with the application if the configuration asks for it.
        """
        block_txs = list(block_txs or [])
        deliver_tx_responses = list(deliver_tx_responses or [])
        if len(block_txs) != len(deliver_tx_responses):
            raise ValueError(
                f"mempool: got {len(block_txs)} transactions but "
                f"{len(deliver_tx_responses)} DeliverTx responses"
            )

        self.height = block_height
        self._notified_txs_available = False
        if new_pre_fn is not None:
            self._pre_check = new_pre_fn
        if new_post_fn is not None:
            self._post_check = new_post_fn

        for tx, response in zip(block_txs, deliver_tx_responses):
            tx = bytes(tx)
            if response.code == CODE_TYPE_OK:
                self.cache.push(tx)
            elif not self.config.keep_invalid_txs_in_cache:
                self.cache.remove(tx)
            try:
                self._store.remove_by_key(tx_key(tx))
            except TxNotFoundError:
                pass

        for expired in self._store.purge_expired(
            block_height, self.config.ttl_num_blocks, self.config.ttl_duration
        ):
            self.cache.remove(expired.tx)
            self.metrics.evicted_txs.add(1)

        size = self.size()
        self.metrics.size.set(size)
        if size > 0:
            if self.config.recheck:
                self._recheck_transactions()
            else:
                self._notify_txs_available()

    def _handle_recheck_result(self, tx: bytes, res: ResponseCheckTx) -> None:
        self.metrics.recheck_times.add(1)
        with self._lock:
            wtx = self._store.get(tx_key(tx))
            if wtx is None:
                return
            err: Optional[Exception] = None
            if self._post_check is not None:
                try:
                    self._post_check(tx, res)
                except Exception as exc:
                    err = exc
            if res.code == CODE_TYPE_OK and err is None:
                wtx.priority = res.priority
                return
            logger.debug(
                "existing transaction no longer valid; failed re-CheckTx callback "
                "tx=%s err=%s code=%d", _hex(wtx.key), err, res.code,
            )
            self._store.remove_by_key(wtx.key)
            self.metrics.failed_txs.add(1)
            if not self.config.keep_invalid_txs_in_cache:
                self.cache.remove(wtx.tx)
            self.metrics.size.set(self.size())

    def _recheck_one(self, wtx: WrappedTx) -> None:
        try:
            response = self.app_conn.check_tx_sync(
                RequestCheckTx(tx=wtx.tx, type=CheckTxType.RECHECK)
            )
        except Exception as exc:
            logger.error(
                "failed to execute CheckTx during recheck err=%s hash=%s", exc, wtx.key.hex()
            )
            return
        self._handle_recheck_result(wtx.tx, response)

    def _recheck_transactions(self) -> None:
        if self.size() == 0:
            raise RuntimeError("mempool: cannot run recheck on an empty mempool")
        logger.debug(
            "executing re-CheckTx for all remaining transactions num_txs=%d height=%d",
            self.size(), self.height,
        )
        wtxs = list(self._store)

        def run() -> None:
            workers = 2 * (os.cpu_count() or 1)
            with ThreadPoolExecutor(max_workers=workers) as pool:
                for wtx in wtxs:
                    pool.submit(self._recheck_one, wtx)
                self.app_conn.flush_async()
            with self._lock:
                self._notify_txs_available()

        threading.Thread(target=run, daemon=True).start()

    def _notify_txs_available(self) -> None:
        if self.size() == 0:
            return
        if self._txs_available is not None and not self._notified_txs_available:
            self._notified_txs_available = True
            try:
                self._txs_available.put_nowait(None)
            except queue.Full:
                pass
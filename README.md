# rollmempool

A thread-safe transaction mempool for ABCI-style applications. Transactions
are validated through an application connection, ordered by the priority the
application assigns, evicted by priority when the pool is full, and expired by
block count or age. The package has no dependencies outside the standard
library.

## Installation

```
pip install rollmempool
```

## Modules

- `rollmempool.txmempool`: `TxMempool`, the mempool itself.
  - `TxMempool(config, app_conn, height=0, *, pre_check=None, post_check=None, metrics=None)`
  - `check_tx(tx, callback=None, tx_info=None)` asks the application about
    `tx` and adds it if it is valid and fits. It raises `TxTooLargeError`,
    `PreCheckError`, `TxInCacheError`, or the connection's stored error
    without adding the transaction. `callback`, if given, receives the
    `ResponseCheckTx`; its `mempool_error` explains why a valid transaction
    was not added (same sender already present, mempool full, post-check
    failure).
  - `reap_max_txs(max_txs)` and `reap_max_bytes_max_gas(max_bytes, max_gas)`
    return raw transactions, highest priority first, ties by earlier arrival;
    a negative limit means no limit. Reaping does not remove anything.
  - `update(block_height, block_txs, deliver_tx_responses, new_pre_fn=None, new_post_fn=None)`
    removes committed transactions, purges expired ones, and rechecks the
    rest in a background thread when `config.recheck` is true. The caller
    must hold the lock. Mismatched list lengths raise `ValueError`.
  - `remove_tx_by_key(key)` (raises `TxNotFoundError`), `flush()`, `size()`,
    `size_bytes()`, `tx in pool`, `flush_app_conn()`.
  - `enable_txs_available()` then `txs_available()` gives a `queue.Queue`
    that receives at most one item per height when transactions are present.
  - `txs_wait_chan()` returns a `threading.Event` set once a transaction is
    held; `txs_front()` returns the first `CElement` in arrival order.
  - Locking: `lock()` / `unlock()`, or use the mempool as a context manager.
- `rollmempool.abci`: `RequestCheckTx`, `ResponseCheckTx`,
  `ResponseDeliverTx`, `CheckTxType`, `TxInfo`, `MempoolConfig`,
  `tx_key(tx)` (SHA-256 digest), `compute_proto_size_for_txs(txs)`, and
  `AppConnMempool(handler)`, an in-process connection that calls a
  `handler(RequestCheckTx) -> ResponseCheckTx` one request at a time and
  remembers the first exception the handler raises.
- `rollmempool.cache`: the `TxCache` interface, `LRUTxCache(size)` and
  `NopTxCache`.
- `rollmempool.checks`: `pre_check_max_bytes(max_bytes)` and
  `post_check_max_gas(max_gas)` filters; they raise `ValueError` to reject.
- `rollmempool.errors`: `MempoolError` and its subclasses `TxInCacheError`,
  `TxTooLargeError`, `MempoolIsFullError`, `PreCheckError`,
  `TxNotFoundError`; `is_pre_check_error(err)`.
- `rollmempool.metrics`: in-process `Gauge`, `Counter`, `Histogram`, the
  `Metrics` set, `recording_metrics(namespace, *label_pairs)`,
  `nop_metrics()` and `exponential_buckets(start, factor, count)`.
- `rollmempool.clist`: `CList` and `CElement`, a linked list that threads can
  walk while others add and remove elements.
- `rollmempool.txstore`: `TxStore`, the arrival-ordered, key- and
  sender-indexed collection the mempool keeps its transactions in.
- `rollmempool.wrapped`: `WrappedTx`, a transaction with its height,
  arrival time, gas, priority, sender and peers.
- `rollmempool.eviction`: `select_victims(elements, priority, needed_bytes)`.

## Example

```python
from rollmempool.abci import (
    AppConnMempool,
    MempoolConfig,
    ResponseCheckTx,
    ResponseDeliverTx,
    TxInfo,
)
from rollmempool.txmempool import TxMempool


def handle(request):
    return ResponseCheckTx(priority=len(request.tx), gas_wanted=1)


pool = TxMempool(MempoolConfig(recheck=False), AppConnMempool(handle))
pool.check_tx(b"hello", None, TxInfo(sender_id=1))
pool.check_tx(b"hi", None, TxInfo(sender_id=2))
print(pool.size(), pool.reap_max_txs(-1))   # 2 [b'hello', b'hi']

with pool:
    pool.update(1, [b"hello"], [ResponseDeliverTx()])
print(pool.size(), b"hi" in pool)           # 1 True
```

## What it does not do

- It does not gossip transactions to peers or listen on the network.
- `AppConnMempool` only calls a Python function in the same process; there
  is no socket or gRPC client for an out-of-process application.
- Metrics are kept in memory and are not exported to any monitoring system.
- Nothing is persisted; the mempool and its cache live only in memory.
- There is no command-line program.

## Tests

```
pip install -e ".[test]"
pytest
```
import os

from rollmempool.abci import tx_key
from rollmempool.cache import LRUTxCache, NopTxCache


def test_cache_remove():
    cache = LRUTxCache(100)
    num_txs = 10
    txs = [os.urandom(32) for _ in range(num_txs)]
    assert len(txs) == num_txs

    for count, tx in enumerate(txs, start=1):
        cache.push(tx)
        assert len(cache) == count
        assert len(cache.keys()) == count

    for removed, tx in enumerate(txs, start=1):
        cache.remove(tx)
        assert len(cache) == num_txs - removed
        assert len(cache.keys()) == num_txs - removed

    assert len(cache) == 0


def _numbered_txs(n):
    return [i.to_bytes(8, "big") for i in range(n)]


def test_insert_many_then_remove_all():
    n = 500
    cache = LRUTxCache(n)
    txs = _numbered_txs(n)
    assert all(cache.push(tx) for tx in txs)
    assert len(cache) == n
    for tx in txs:
        cache.remove(tx)
    assert len(cache) == 0


def test_push_reports_new_and_existing():
    cache = LRUTxCache(10)
    assert cache.push(b"a") is True
    assert cache.push(b"a") is False
    assert cache.has(b"a")
    assert not cache.has(b"b")


def test_full_cache_evicts_least_recently_used():
    cache = LRUTxCache(3)
    for tx in (b"a", b"b", b"c"):
        cache.push(tx)
    cache.push(b"a")  # refresh a, b becomes oldest
    cache.push(b"d")
    assert not cache.has(b"b")
    assert cache.keys() == [tx_key(b"c"), tx_key(b"a"), tx_key(b"d")]


def test_has_does_not_refresh():
    cache = LRUTxCache(2)
    cache.push(b"a")
    cache.push(b"b")
    assert cache.has(b"a")
    cache.push(b"c")
    assert not cache.has(b"a")
    assert cache.has(b"b") and cache.has(b"c")


def test_remove_missing_is_harmless_and_reset_empties():
    cache = LRUTxCache(5)
    cache.push(b"a")
    cache.remove(b"zzz")
    assert len(cache) == 1
    cache.reset()
    assert len(cache) == 0
    assert cache.push(b"a") is True


def test_nop_cache_remembers_nothing():
    cache = NopTxCache()
    assert cache.push(b"a") is True
    assert cache.push(b"a") is True
    assert cache.has(b"a") is False
from rollmempool.abci import tx_key
from rollmempool.wrapped import WrappedTx


def test_size_is_raw_length():
    tx = b"sender=key=10"
    assert WrappedTx(tx).size() == len(tx)


def test_key_is_tx_key():
    tx = b"a=b=1"
    assert WrappedTx(tx).key == tx_key(tx)


def test_accepts_bytearray_and_stores_bytes():
    w = WrappedTx(bytearray(b"x=y=2"))
    assert w.tx == b"x=y=2"
    assert w.key == tx_key(b"x=y=2")


def test_defaults():
    w = WrappedTx(b"tx")
    assert (w.priority, w.gas_wanted, w.sender, w.height) == (0, 0, "", 0)


def test_peers():
    w = WrappedTx(b"tx")
    assert not w.has_peer(1)
    w.set_peer(1)
    w.set_peer(7)
    w.set_peer(1)
    assert w.has_peer(1)
    assert w.has_peer(7)
    assert not w.has_peer(2)
    assert w.peers == {1, 7}


def test_arrival_orders_later_creations_after():
    first = WrappedTx(b"a", timestamp=5.0)
    second = WrappedTx(b"b", timestamp=5.0)
    assert first.arrival < second.arrival
    earlier = WrappedTx(b"c", timestamp=1.0)
    assert earlier.arrival < first.arrival


def test_metadata_is_mutable():
    w = WrappedTx(b"tx")
    w.priority = 42
    w.sender = "alice"
    w.gas_wanted = 3
    assert (w.priority, w.sender, w.gas_wanted) == (42, "alice", 3)


def test_identity_equality():
    a = WrappedTx(b"same")
    b = WrappedTx(b"same")
    assert a.key == b.key
    assert a != b
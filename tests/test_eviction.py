from rollmempool.eviction import select_victims
from rollmempool.wrapped import WrappedTx


def make(spec, timestamp):
    priority = int(spec.rsplit("=", 1)[1])
    return WrappedTx(spec.encode(), priority=priority, timestamp=timestamp)


def pool(*specs):
    return [make(spec, float(i)) for i, spec in enumerate(specs)]


def test_no_candidates_means_drop():
    txs = pool("key1=0000=25", "key2=0001=5")
    assert select_victims(txs, 5, 1) == []


def test_not_enough_bytes_means_drop():
    txs = pool("key1=0000=25", "key2=0001=5")
    assert select_victims(txs, 10, len("key2=0001=5") + 1) == []


def test_newest_of_lowest_priority_goes_first():
    txs = pool("key1=0000=25", "key2=0001=5", "key3=0002=10", "key4=0003=3", "key5=0004=3")
    new = "key7=0006=7"
    victims = select_victims(txs, 7, len(new))
    assert [v.tx for v in victims] == [b"key5=0004=3"]


def test_multiple_victims_for_large_tx():
    txs = pool("key1=0000=25", "key8=0007=20", "key3=0002=10", "key9=0008=9", "key7=0006=7")
    new = "key10=0123456789abcdef=11"
    victims = select_victims(txs, 11, len(new))
    assert [v.tx for v in victims] == [b"key7=0006=7", b"key9=0008=9", b"key3=0002=10"]
    assert sum(v.size() for v in victims) >= len(new)


def test_higher_or_equal_priority_never_chosen():
    txs = pool("a=0=1", "b=0=2", "c=0=3")
    victims = select_victims(txs, 2, 1)
    assert all(v.priority < 2 for v in victims)
    assert [v.tx for v in victims] == [b"a=0=1"]


def test_stops_once_enough_room():
    txs = pool("a=0=1", "b=0=1", "c=0=1")
    victims = select_victims(txs, 5, 1)
    assert len(victims) == 1
    assert victims[0].tx == b"c=0=1"


def test_input_order_does_not_matter():
    txs = pool("key2=0001=5", "key4=0003=3", "key5=0004=3")
    forward = select_victims(txs, 7, 20)
    backward = select_victims(list(reversed(txs)), 7, 20)
    assert [v.tx for v in forward] == [v.tx for v in backward]
    assert forward[0].tx == b"key5=0004=3"
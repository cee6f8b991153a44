import pytest

from rollmempool.metrics import (
    Counter,
    Gauge,
    Histogram,
    exponential_buckets,
    nop_metrics,
    recording_metrics,
)


def test_exponential_buckets_shape():
    buckets = exponential_buckets(1, 3, 17)
    assert len(buckets) == 17
    assert buckets[0] == 1
    assert all(b == a * 3 for a, b in zip(buckets, buckets[1:]))


@pytest.mark.parametrize("start,factor,count", [(1, 3, 0), (0, 3, 5), (1, 1, 5)])
def test_exponential_buckets_rejects_bad_arguments(start, factor, count):
    with pytest.raises(ValueError):
        exponential_buckets(start, factor, count)


def test_recording_metrics_names_and_labels():
    metrics = recording_metrics("rollup", "chain_id", "test")
    assert metrics.size.full_name == "rollup_mempool_size"
    assert metrics.recheck_times.full_name == "rollup_mempool_recheck_times"
    assert metrics.failed_txs.labels == {"chain_id": "test"}
    assert list(metrics.tx_size_bytes.buckets) == exponential_buckets(1, 3, 17)


def test_recording_metrics_pads_missing_label_value():
    metrics = recording_metrics("", "a")
    assert metrics.evicted_txs.labels == {"a": "unknown"}
    assert metrics.size.full_name == "mempool_size"


def test_gauge_and_counter_record():
    metrics = recording_metrics("ns")
    metrics.size.set(4)
    metrics.size.set(2)
    metrics.failed_txs.add(1)
    metrics.failed_txs.add(2)
    assert metrics.size.value == 2
    assert metrics.failed_txs.value == 3


def test_counter_rejects_negative_delta():
    counter = Counter("c")
    with pytest.raises(ValueError):
        counter.add(-1)


def test_histogram_buckets_are_cumulative():
    hist = Histogram("h", buckets=[1, 3, 9])
    for value in (0.5, 2, 3, 100):
        hist.observe(value)
    assert hist.count == 4
    assert hist.sum == 105.5
    assert hist.bucket_counts == (1, 3, 3, 4)


def test_nop_metrics_discard_everything():
    metrics = nop_metrics()
    metrics.size.set(10)
    metrics.rejected_txs.add(5)
    metrics.tx_size_bytes.observe(7)
    assert metrics.size.value == 0
    assert metrics.rejected_txs.value == 0
    assert metrics.tx_size_bytes.count == 0


def test_gauge_default_subsystem_in_name():
    gauge = Gauge("size", namespace="x")
    gauge.set(1.5)
    assert gauge.full_name == "x_mempool_size"
    assert gauge.value == 1.5
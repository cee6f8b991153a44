"""Metrics exposed by the mempool."""

from __future__ import annotations

import bisect
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

METRICS_SUBSYSTEM = "mempool"


def exponential_buckets(start: float, factor: float, count: int) -> List[float]:
    """Return count bucket bounds, the first being start, each factor times the last."""
    if count < 1:
        raise ValueError("exponential_buckets needs a positive count")
    if start <= 0:
        raise ValueError("exponential_buckets needs a positive start value")
    if factor <= 1:
        raise ValueError("exponential_buckets needs a factor greater than 1")
    buckets = []
    value = start
    for _ in range(count):
        buckets.append(value)
        value *= factor
    return buckets


class _Metric:
    def __init__(
        self,
        name: str = "",
        help_text: str = "",
        namespace: str = "",
        subsystem: str = METRICS_SUBSYSTEM,
        labels: Optional[Dict[str, str]] = None,
        enabled: bool = True,
    ) -> None:
        self.name = name
        self.help_text = help_text
        self.namespace = namespace
        self.subsystem = subsystem
        self.labels = dict(labels or {})
        self.enabled = enabled
        self._lock = threading.Lock()

    @property
    def full_name(self) -> str:
        return "_".join(part for part in (self.namespace, self.subsystem, self.name) if part)


class Gauge(_Metric):
    """A value that can go up and down."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.value = 0.0

    def set(self, value: float) -> None:
        if self.enabled:
            with self._lock:
                self.value = float(value)


class Counter(_Metric):
    """A monotonically increasing count."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.value = 0.0

    def add(self, delta: float) -> None:
        if not self.enabled:
            return
        if delta < 0:
            raise ValueError("counter cannot decrease in value")
        with self._lock:
            self.value += delta


class Histogram(_Metric):
    """A distribution of observed values over fixed buckets."""

    def __init__(self, *args, buckets: Sequence[float] = (), **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.buckets: Tuple[float, ...] = tuple(sorted(buckets))
        self._counts = [0] * (len(self.buckets) + 1)
        self.count = 0
        self.sum = 0.0

    def observe(self, value: float) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._counts[bisect.bisect_left(self.buckets, value)] += 1
            self.count += 1
            self.sum += value

    @property
    def bucket_counts(self) -> Tuple[int, ...]:
        """Cumulative counts per bucket bound, the last entry covering all values."""
        with self._lock:
            totals = []
            running = 0
            for c in self._counts:
                running += c
                totals.append(running)
            return tuple(totals)


@dataclass
class Metrics:
    """The set of mempool metrics."""

    size: Gauge
    tx_size_bytes: Histogram
    failed_txs: Counter
    rejected_txs: Counter
    evicted_txs: Counter
    recheck_times: Counter


def recording_metrics(namespace: str, *args: str) -> Metrics:
    """Build recording metrics; args are alternating label names and values."""
    names = list(args[0::2])
    values = list(args[1::2])
    values += ["unknown"] * (len(names) - len(values))
    labels = dict(zip(names, values))
    common = {"namespace": namespace, "labels": labels}
    return Metrics(
        size=Gauge("size", "Size of the mempool (number of uncommitted transactions).", **common),
        tx_size_bytes=Histogram(
            "tx_size_bytes",
            "Transaction sizes in bytes.",
            buckets=exponential_buckets(1, 3, 17),
            **common,
        ),
        failed_txs=Counter("failed_txs", "Number of failed transactions.", **common),
        rejected_txs=Counter("rejected_txs", "Number of rejected transactions.", **common),
        evicted_txs=Counter("evicted_txs", "Number of evicted transactions.", **common),
        recheck_times=Counter(
            "recheck_times",
            "Number of times transactions are rechecked in the mempool.",
            **common,
        ),
    )


def nop_metrics() -> Metrics:
    """Build metrics that discard everything recorded."""
    return Metrics(
        size=Gauge(enabled=False),
        tx_size_bytes=Histogram(enabled=False),
        failed_txs=Counter(enabled=False),
        rejected_txs=Counter(enabled=False),
        evicted_txs=Counter(enabled=False),
        recheck_times=Counter(enabled=False),
    )
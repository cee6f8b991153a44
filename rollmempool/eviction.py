"""Choosing which transactions to evict to make room for a new one."""

from __future__ import annotations

from typing import Iterable, List

from .wrapped import WrappedTx


def select_victims(
    elements: Iterable[WrappedTx], priority: int, needed_bytes: int
) -> List[WrappedTx]:
    """Return the transactions to evict so that needed_bytes become free.

    Only transactions with priority strictly lower than ``priority`` are
    eligible. They are taken lowest priority first, newer before older among
    equals, until their total size reaches needed_bytes. An empty list means
    no eviction can make enough room and the new transaction must be dropped.
    """
    candidates = [w for w in elements if w.priority < priority]
    if not candidates or sum(w.size() for w in candidates) < needed_bytes:
        return []

    candidates.sort(key=lambda w: w.arrival, reverse=True)
    candidates.sort(key=lambda w: w.priority)

    victims = []
    evicted = 0
    for w in candidates:
        victims.append(w)
        evicted += w.size()
        if evicted >= needed_bytes:
            break
    return victims
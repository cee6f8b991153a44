"""Priority transaction mempool with LRU caching, eviction and expiry."""

__version__ = "0.1.0"

__all__ = [
    "abci",
    "cache",
    "checks",
    "clist",
    "errors",
    "eviction",
    "metrics",
    "txmempool",
    "txstore",
    "wrapped",
]
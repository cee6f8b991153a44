"""Standard pre- and post-check filters for the mempool."""

from __future__ import annotations

from typing import Callable

from .abci import ResponseCheckTx, compute_proto_size_for_txs

PreCheckFunc = Callable[[bytes], None]
PostCheckFunc = Callable[[bytes, ResponseCheckTx], None]


def pre_check_max_bytes(max_bytes: int) -> PreCheckFunc:
    """Return a filter rejecting transactions whose encoded size exceeds max_bytes."""

    def check(tx: bytes) -> None:
        tx_size = compute_proto_size_for_txs([tx])
        if tx_size > max_bytes:
            raise ValueError(f"tx size is too big: {tx_size}, max: {max_bytes}")

    return check


def post_check_max_gas(max_gas: int) -> PostCheckFunc:
    """Return a filter rejecting responses that want more than max_gas.

    A max_gas of -1 disables the check.
    """

    def check(tx: bytes, res: ResponseCheckTx) -> None:
        if max_gas == -1:
            return
        if res.gas_wanted < 0:
            raise ValueError(f"gas wanted {res.gas_wanted} is negative")
        if res.gas_wanted > max_gas:
            raise ValueError(f"gas wanted {res.gas_wanted} is greater than max gas {max_gas}")

    return check
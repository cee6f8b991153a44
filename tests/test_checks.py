import pytest

from rollmempool.abci import ResponseCheckTx, compute_proto_size_for_txs
from rollmempool.checks import post_check_max_gas, pre_check_max_bytes


def test_pre_check_accepts_at_limit_and_rejects_above():
    tx = b"sender=key=10"
    limit = compute_proto_size_for_txs([tx])
    assert pre_check_max_bytes(limit)(tx) is None
    with pytest.raises(ValueError, match=f"tx size is too big: {limit}, max: {limit - 1}"):
        pre_check_max_bytes(limit - 1)(tx)


def test_post_check_disabled_with_minus_one():
    check = post_check_max_gas(-1)
    assert check(b"tx", ResponseCheckTx(gas_wanted=-5)) is None
    assert check(b"tx", ResponseCheckTx(gas_wanted=10**12)) is None


def test_post_check_rejects_negative_gas():
    with pytest.raises(ValueError, match="gas wanted -1 is negative"):
        post_check_max_gas(100)(b"tx", ResponseCheckTx(gas_wanted=-1))


def test_post_check_rejects_excess_gas():
    check = post_check_max_gas(100)
    assert check(b"tx", ResponseCheckTx(gas_wanted=100)) is None
    with pytest.raises(ValueError, match="gas wanted 101 is greater than max gas 100"):
        check(b"tx", ResponseCheckTx(gas_wanted=101))
import pytest

from rollmempool.errors import (
    MempoolError,
    MempoolIsFullError,
    PreCheckError,
    TxInCacheError,
    TxNotFoundError,
    TxTooLargeError,
    is_pre_check_error,
)


def test_tx_in_cache_message():
    assert str(TxInCacheError()) == "tx already exists in cache"


def test_tx_too_large_message_and_fields():
    err = TxTooLargeError(10, 20)
    assert str(err) == "Tx too large. Max size is 10, but got 20"
    assert (err.max_bytes, err.actual) == (10, 20)
    assert isinstance(err, MempoolError)


def test_mempool_is_full_message():
    err = MempoolIsFullError(5, 5, 40, 60)
    assert str(err) == (
        "mempool is full: number of txs 5 (max: 5), total txs bytes 40 (max: 60)"
    )


def test_pre_check_error_takes_reason_text():
    reason = ValueError("too big")
    err = PreCheckError(reason)
    assert str(err) == "too big"
    assert err.reason is reason
    assert err.__cause__ is reason


def test_tx_not_found_message_uses_hex_key():
    err = TxNotFoundError(b"\x01\xab")
    assert str(err) == "transaction 01ab not found"
    with pytest.raises(KeyError):
        raise err


def test_is_pre_check_error_direct_and_wrapped():
    assert is_pre_check_error(PreCheckError(ValueError("x")))
    try:
        try:
            raise PreCheckError(ValueError("x"))
        except PreCheckError as inner:
            raise RuntimeError("outer") from inner
    except RuntimeError as outer:
        wrapped = outer
    assert is_pre_check_error(wrapped)


def test_is_pre_check_error_false_cases():
    assert not is_pre_check_error(None)
    assert not is_pre_check_error(TxInCacheError())
    assert not is_pre_check_error(ValueError("x"))
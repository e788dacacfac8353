import pytest

from x402_pay.wallet.erc20 import decode_uint256, encode_balance_of, encode_transfer

OWNER = "0x1111111111111111111111111111111111111111"
RECIPIENT = "0x2222222222222222222222222222222222222222"


def test_encode_balance_of():
    data = encode_balance_of(OWNER)
    assert data == "0x70a08231" + "0" * 24 + "11" * 20


def test_encode_transfer():
    data = encode_transfer(RECIPIENT, 1_000_000)
    assert data.startswith("0xa9059cbb")
    assert data[10:74] == "0" * 24 + "22" * 20
    assert int(data[74:], 16) == 1_000_000


def test_decode_uint256():
    assert decode_uint256("0x" + "0" * 63 + "a") == 10
    assert decode_uint256("0x" + format(2**200, "064x")) == 2**200


def test_decode_empty_result():
    with pytest.raises(ValueError):
        decode_uint256("0x")

"""ERC-20 call data helpers shared by the wallet backends."""

from eth_abi import decode, encode
from eth_utils import (
    decode_hex,
    encode_hex,
    function_signature_to_4byte_selector,
    to_checksum_address,
)

# Minimal ERC-20 ABI
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    },
]

BALANCE_OF_SELECTOR = function_signature_to_4byte_selector("balanceOf(address)")
TRANSFER_SELECTOR = function_signature_to_4byte_selector("transfer(address,uint256)")


def encode_balance_of(owner: str) -> str:
    return encode_hex(
        BALANCE_OF_SELECTOR + encode(["address"], [to_checksum_address(owner)])
    )


def encode_transfer(recipient: str, amount: int) -> str:
    return encode_hex(
        TRANSFER_SELECTOR
        + encode(["address", "uint256"], [to_checksum_address(recipient), amount])
    )


def decode_uint256(result: str) -> int:
    """Decode an ``eth_call`` result holding a single uint256."""
    data = decode_hex(result)
    if not data:
        raise ValueError("Empty result, is the asset a token contract?")
    (value,) = decode(["uint256"], data)
    return value

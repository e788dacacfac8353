import base64
from typing import Union

from x402_pay.types import PaymentProof, SettlementReceipt


def safe_base64_encode(data: Union[str, bytes]) -> str:
    """Safely encode string or bytes to base64 string.

    Args:
        data: String or bytes to encode

    Returns:
        Base64 encoded string
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("utf-8")


def safe_base64_decode(data: str) -> str:
    """Safely decode base64 string to bytes and then to utf-8 string.

    Args:
        data: Base64 encoded string

    Returns:
        Decoded utf-8 string
    """
    return base64.b64decode(data, validate=True).decode("utf-8")


def encode_proof(transaction_hash: str, chain_id: int) -> str:
    """Encode a payment proof header value.

    The header carries ``{"hash": ..., "chainId": ...}`` as compact JSON,
    base64 encoded.

    Args:
        transaction_hash: Hash of the confirmed transfer
        chain_id: Numeric id of the chain it was mined on

    Returns:
        Base64 encoded proof token
    """
    proof = PaymentProof(hash=transaction_hash, chain_id=chain_id)
    return encode_proof_model(proof)


def encode_proof_model(proof: PaymentProof) -> str:
    return safe_base64_encode(proof.model_dump_json(by_alias=True))


def decode_proof(token: str) -> PaymentProof:
    """Decode a base64 proof token.

    Args:
        token: Base64 encoded proof token

    Returns:
        Decoded PaymentProof object
    """
    return PaymentProof.model_validate_json(safe_base64_decode(token))


def decode_settlement_header(header: str) -> SettlementReceipt:
    """Decode the X-PAYMENT-RESPONSE header.

    Args:
        header: Base64 encoded settlement response

    Returns:
        Decoded SettlementReceipt object
    """
    return SettlementReceipt.model_validate_json(safe_base64_decode(header))

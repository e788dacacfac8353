"""Payment error taxonomy and the wallet-provider error translation boundary.

Every failure the payment flow can end in is a :class:`PaymentError` subclass
with a stable :class:`PaymentErrorKind`, so callers branch on type or kind and
never on message text. Wallet backends raise whatever their transport raises;
:func:`translate_provider_error` is the one place that turns those shapes into
the taxonomy.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Mapping, Optional


class PaymentErrorKind(str, Enum):
    UNSUPPORTED_NETWORK = "unsupported_network"
    CHAIN_SWITCH_REJECTED = "chain_switch_rejected"
    CHAIN_SWITCH_FAILED = "chain_switch_failed"
    USER_REJECTED = "user_rejected"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    TRANSACTION_FAILED = "transaction_failed"
    SERVER_REJECTED_PROOF = "server_rejected_proof"
    REQUEST_FAILED = "request_failed"
    PAYMENT_IN_PROGRESS = "payment_in_progress"


class PaymentError(Exception):
    """Base class for payment-related errors."""

    kind: PaymentErrorKind
    severity = "error"
    default_message = "The payment could not be completed."

    @property
    def is_recoverable(self) -> bool:
        return self.severity == "info"

    @property
    def user_message(self) -> str:
        return self.default_message


class UnsupportedNetwork(PaymentError):
    kind = PaymentErrorKind.UNSUPPORTED_NETWORK

    def __init__(self, networks: Iterable[str]):
        self.networks = list(networks)
        offered = ", ".join(self.networks) if self.networks else "none"
        super().__init__(f"No supported network among offered options: {offered}")

    @property
    def user_message(self) -> str:
        offered = ", ".join(self.networks) if self.networks else "no networks"
        return f"This resource only accepts payment on {offered}, which this wallet does not support."


class ChainSwitchRejected(PaymentError):
    kind = PaymentErrorKind.CHAIN_SWITCH_REJECTED
    severity = "info"
    default_message = "Network switch was cancelled. Switch networks and try again when ready."


class ChainSwitchFailed(PaymentError):
    kind = PaymentErrorKind.CHAIN_SWITCH_FAILED
    default_message = "The wallet could not switch to the required network."


class UserRejected(PaymentError):
    kind = PaymentErrorKind.USER_REJECTED
    severity = "info"
    default_message = "Payment was cancelled in the wallet. Nothing was charged."


class InsufficientBalance(PaymentError):
    kind = PaymentErrorKind.INSUFFICIENT_BALANCE

    def __init__(self, required: int | str, available: int | str):
        self.required = str(required)
        self.available = str(available)
        super().__init__(
            f"Insufficient balance. Required: {self.required}, Available: {self.available}"
        )

    @property
    def user_message(self) -> str:
        return (
            f"Insufficient balance: {self.required} units required, "
            f"{self.available} available."
        )


class TransactionFailed(PaymentError):
    kind = PaymentErrorKind.TRANSACTION_FAILED
    default_message = "The payment transaction failed."

    def __init__(self, message: str, transaction_hash: Optional[str] = None):
        self.transaction_hash = transaction_hash
        super().__init__(message)


class ServerRejectedProof(PaymentError):
    """Payment went through on-chain but the server did not honor the proof."""

    kind = PaymentErrorKind.SERVER_REJECTED_PROOF
    default_message = (
        "Payment was sent on-chain but the server did not accept it. "
        "Keep the transaction hash for support."
    )

    def __init__(
        self,
        message: str,
        *,
        transaction_hash: str,
        proof: str,
        status_code: Optional[int] = None,
    ):
        self.transaction_hash = transaction_hash
        self.proof = proof
        self.status_code = status_code
        super().__init__(message)


class RequestFailed(PaymentError):
    kind = PaymentErrorKind.REQUEST_FAILED
    default_message = "The request to the server failed."

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class PaymentInProgressError(PaymentError):
    """Raised when a payment is started while another one is still running."""

    kind = PaymentErrorKind.PAYMENT_IN_PROGRESS
    severity = "info"
    default_message = "A payment is already in progress."


def describe_error(error: PaymentError) -> tuple[str, str]:
    """Return ``(severity, message)`` for display."""
    return error.severity, error.user_message


# ============================================================================
# Provider error translation
# ============================================================================

# EIP-1193 provider error codes
USER_REJECTED_REQUEST = 4001
UNAUTHORIZED = 4100
UNSUPPORTED_METHOD = 4200
DISCONNECTED = 4900
CHAIN_DISCONNECTED = 4901
UNRECOGNIZED_CHAIN = 4902

_REJECTION_CODES = {USER_REJECTED_REQUEST, "ACTION_REJECTED"}


class ProviderRpcError(Exception):
    """Error object returned by a wallet provider request."""

    def __init__(self, code: int | str, message: str, data: Any = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"{message} (code {code})")


class ProviderErrorKind(str, Enum):
    USER_REJECTED = "user_rejected"
    UNRECOGNIZED_CHAIN = "unrecognized_chain"
    UNKNOWN = "unknown"


def _error_code(exc: BaseException) -> Any:
    code = getattr(exc, "code", None)
    if code is not None:
        return code

    # web3 keeps the JSON-RPC response around; older versions pass it as args[0]
    rpc_response = getattr(exc, "rpc_response", None)
    candidates = [rpc_response] if isinstance(rpc_response, Mapping) else []
    candidates.extend(arg for arg in exc.args if isinstance(arg, Mapping))
    for candidate in candidates:
        error = candidate.get("error", candidate)
        if isinstance(error, Mapping) and "code" in error:
            return error["code"]
    return None


def _error_message(exc: BaseException) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    for arg in exc.args:
        if isinstance(arg, Mapping) and isinstance(arg.get("message"), str):
            return arg["message"]
    return str(exc) or exc.__class__.__name__


def classify_provider_error(exc: BaseException) -> ProviderErrorKind:
    code = _error_code(exc)
    if not isinstance(code, (int, str)):
        return ProviderErrorKind.UNKNOWN
    if code in _REJECTION_CODES:
        return ProviderErrorKind.USER_REJECTED
    if code == UNRECOGNIZED_CHAIN:
        return ProviderErrorKind.UNRECOGNIZED_CHAIN
    return ProviderErrorKind.UNKNOWN


def translate_provider_error(
    exc: BaseException,
    stage: str,
    transaction_hash: Optional[str] = None,
) -> PaymentError:
    """Map a wallet/provider exception raised during ``stage`` to the taxonomy.

    ``stage`` is ``"switch"`` for chain switching and registration,
    ``"transfer"`` for account, balance, signing and confirmation calls and
    ``"request"`` for anything else.
    """
    if isinstance(exc, PaymentError):
        return exc

    kind = classify_provider_error(exc)
    message = _error_message(exc)

    if stage == "switch":
        if kind is ProviderErrorKind.USER_REJECTED:
            return ChainSwitchRejected(message)
        return ChainSwitchFailed(message)

    if stage == "transfer":
        if kind is ProviderErrorKind.USER_REJECTED:
            return UserRejected(message)
        return TransactionFailed(message, transaction_hash=transaction_hash)

    return RequestFailed(message)

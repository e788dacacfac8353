"""x402_pay: pay for HTTP 402 protected resources with an on-chain transfer."""

# Flow
from x402_pay.orchestrator import (
    PaymentOrchestrator,
    PaymentOutcome,
    PaymentState,
    X_PAYMENT_HEADER,
)
from x402_pay.matcher import PaymentOptionMatcher, select_option
from x402_pay.chains import ChainSwitcher
from x402_pay.executor import PaymentExecutor

# Proofs
from x402_pay.encoding import (
    decode_proof,
    decode_settlement_header,
    encode_proof,
)

# Errors
from x402_pay.errors import (
    ChainSwitchFailed,
    ChainSwitchRejected,
    InsufficientBalance,
    PaymentError,
    PaymentErrorKind,
    PaymentInProgressError,
    ProviderRpcError,
    RequestFailed,
    ServerRejectedProof,
    TransactionFailed,
    UnsupportedNetwork,
    UserRejected,
    describe_error,
    translate_provider_error,
)

# Types
from x402_pay.types import (
    PaymentAttempt,
    PaymentOption,
    PaymentProof,
    PaymentRequiredResponse,
    SettlementReceipt,
)

# Networks
from x402_pay.networks import (
    DEFAULT_CHAINS,
    ChainConfig,
    NativeCurrency,
    NetworkRegistry,
    get_chain_config,
)

# Wallets
from x402_pay.wallet import (
    JsonRpcWalletProvider,
    LocalAccountWalletProvider,
    WalletProvider,
    WalletSession,
)

__all__ = [
    # Flow
    "PaymentOrchestrator",
    "PaymentOutcome",
    "PaymentState",
    "X_PAYMENT_HEADER",
    "PaymentOptionMatcher",
    "select_option",
    "ChainSwitcher",
    "PaymentExecutor",
    # Proofs
    "decode_proof",
    "decode_settlement_header",
    "encode_proof",
    # Errors
    "ChainSwitchFailed",
    "ChainSwitchRejected",
    "InsufficientBalance",
    "PaymentError",
    "PaymentErrorKind",
    "PaymentInProgressError",
    "ProviderRpcError",
    "RequestFailed",
    "ServerRejectedProof",
    "TransactionFailed",
    "UnsupportedNetwork",
    "UserRejected",
    "describe_error",
    "translate_provider_error",
    # Types
    "PaymentAttempt",
    "PaymentOption",
    "PaymentProof",
    "PaymentRequiredResponse",
    "SettlementReceipt",
    # Networks
    "DEFAULT_CHAINS",
    "ChainConfig",
    "NativeCurrency",
    "NetworkRegistry",
    "get_chain_config",
    # Wallets
    "JsonRpcWalletProvider",
    "LocalAccountWalletProvider",
    "WalletProvider",
    "WalletSession",
]

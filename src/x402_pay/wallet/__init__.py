from x402_pay.wallet.base import (
    REQUIRED_CONFIRMATIONS,
    ConfirmationTimeout,
    TransactionReverted,
    WalletNotConnectedError,
    WalletProvider,
    WalletSession,
)
from x402_pay.wallet.jsonrpc import HttpJsonRpcTransport, JsonRpcWalletProvider
from x402_pay.wallet.local import LocalAccountWalletProvider, http_web3_factory

__all__ = [
    "REQUIRED_CONFIRMATIONS",
    "ConfirmationTimeout",
    "TransactionReverted",
    "WalletNotConnectedError",
    "WalletProvider",
    "WalletSession",
    "HttpJsonRpcTransport",
    "JsonRpcWalletProvider",
    "LocalAccountWalletProvider",
    "http_web3_factory",
]

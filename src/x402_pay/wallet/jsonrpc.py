"""Wallet backend that speaks the EIP-1193 request shape to an external wallet."""

from __future__ import annotations

import itertools
import logging
import time
from typing import Any, Callable, Optional

import requests
from eth_utils import encode_hex, to_checksum_address

from x402_pay.errors import CHAIN_DISCONNECTED, ProviderRpcError
from x402_pay.networks import ChainConfig
from x402_pay.wallet.base import (
    REQUIRED_CONFIRMATIONS,
    ConfirmationTimeout,
    TransactionReverted,
)
from x402_pay.wallet.erc20 import decode_uint256, encode_balance_of, encode_transfer

logger = logging.getLogger(__name__)

RequestFn = Callable[[str, list], Any]


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16)


class HttpJsonRpcTransport:
    """POST JSON-RPC requests to a wallet or remote signer endpoint."""

    def __init__(
        self,
        url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ) -> None:
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout
        self._ids = itertools.count(1)

    def __call__(self, method: str, params: list) -> Any:
        body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        response = self.session.post(self.url, json=body, timeout=self.timeout)
        response.raise_for_status()
        payload = response.json()
        error = payload.get("error")
        if error:
            raise ProviderRpcError(
                error.get("code", -32603),
                error.get("message", "Unknown provider error"),
                error.get("data"),
            )
        return payload.get("result")


class JsonRpcWalletProvider:
    """Wallet reached through EIP-1193 ``request(method, params)`` calls.

    Args:
        request: Callable performing one request and returning its result, or
            raising :class:`ProviderRpcError` on an RPC error object.
        poll_interval: Seconds between receipt polls while waiting.
    """

    def __init__(
        self,
        request: RequestFn,
        *,
        poll_interval: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._request = request
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "JsonRpcWalletProvider":
        timeout = kwargs.pop("timeout", 30)
        return cls(HttpJsonRpcTransport(url, timeout=timeout), **kwargs)

    def request(self, method: str, params: Optional[list] = None) -> Any:
        logger.debug("Wallet request %s", method)
        return self._request(method, params or [])

    def get_accounts(self) -> list[str]:
        accounts = self.request("eth_accounts")
        if not accounts:
            accounts = self.request("eth_requestAccounts")
        return [to_checksum_address(account) for account in accounts or []]

    def get_chain_id(self) -> int:
        chain_id = self.request("eth_chainId")
        if chain_id is None:
            raise ProviderRpcError(CHAIN_DISCONNECTED, "Wallet reported no chain id")
        return _to_int(chain_id)

    def switch_chain(self, chain_id_hex: str) -> None:
        self.request("wallet_switchEthereumChain", [{"chainId": chain_id_hex}])

    def add_chain(self, config: ChainConfig) -> None:
        self.request("wallet_addEthereumChain", [config.to_add_chain_params()])

    def get_token_balance(self, asset: str, owner: str) -> int:
        result = self.request(
            "eth_call",
            [{"to": asset, "data": encode_balance_of(owner)}, "latest"],
        )
        return decode_uint256(result)

    def send_token_transfer(
        self,
        asset: str,
        sender: str,
        recipient: str,
        amount: int,
    ) -> str:
        return self.request(
            "eth_sendTransaction",
            [
                {
                    "from": sender,
                    "to": asset,
                    "data": encode_transfer(recipient, amount),
                    "value": "0x0",
                }
            ],
        )

    def wait_for_confirmation(
        self,
        tx_hash: str,
        confirmations: int = REQUIRED_CONFIRMATIONS,
        timeout: float = 120.0,
    ) -> dict[str, Any]:
        deadline = self._clock() + timeout
        while True:
            receipt = self.request("eth_getTransactionReceipt", [tx_hash])
            if receipt and receipt.get("blockNumber") is not None:
                if _to_int(receipt.get("status", "0x1")) == 0:
                    raise TransactionReverted(tx_hash)
                mined_in = _to_int(receipt["blockNumber"])
                head = _to_int(self.request("eth_blockNumber"))
                if head - mined_in + 1 >= confirmations:
                    return receipt
            if self._clock() >= deadline:
                raise ConfirmationTimeout(tx_hash, timeout)
            self._sleep(self.poll_interval)

    def sign_message(self, message: str) -> str:
        account = self.get_accounts()[0]
        return self.request("personal_sign", [encode_hex(message.encode("utf-8")), account])

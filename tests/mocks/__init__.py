"""In-memory wallet and HTTP helpers for testing."""

import json
from typing import Any, Optional

from requests import Response
from requests.structures import CaseInsensitiveDict

from x402_pay.errors import UNRECOGNIZED_CHAIN, ProviderRpcError
from x402_pay.networks import ChainConfig

PAYER = "0x1111111111111111111111111111111111111111"
TX_HASH = "0x" + "ab" * 32


class FakeWallet:
    """Records every call; raises the configured error for a method if set."""

    def __init__(
        self,
        *,
        chain_id: Optional[int] = 84532,
        balance: int = 2_000_000,
        accounts: tuple = (PAYER,),
        known_chains: Optional[set] = None,
        tx_hash: str = TX_HASH,
        errors: Optional[dict[str, BaseException]] = None,
    ):
        self.chain_id = chain_id
        self.balance = balance
        self.accounts = list(accounts)
        self.known_chains = known_chains
        self.tx_hash = tx_hash
        self.errors = errors or {}
        self.calls: list[tuple[str, tuple]] = []

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        if method in self.errors:
            raise self.errors[method]

    def called(self, method: str) -> list[tuple]:
        return [args for name, args in self.calls if name == method]

    @property
    def methods(self) -> list[str]:
        return [name for name, _ in self.calls]

    def get_accounts(self) -> list[str]:
        self._record("get_accounts")
        return list(self.accounts)

    def get_chain_id(self) -> int:
        self._record("get_chain_id")
        return self.chain_id

    def switch_chain(self, chain_id_hex: str) -> None:
        self._record("switch_chain", chain_id_hex)
        chain_id = int(chain_id_hex, 16)
        if self.known_chains is not None and chain_id not in self.known_chains:
            raise ProviderRpcError(UNRECOGNIZED_CHAIN, f"Unrecognized chain ID {chain_id_hex}")
        self.chain_id = chain_id

    def add_chain(self, config: ChainConfig) -> None:
        self._record("add_chain", config)
        if self.known_chains is not None:
            self.known_chains.add(config.chain_id)
        self.chain_id = config.chain_id

    def get_token_balance(self, asset: str, owner: str) -> int:
        self._record("get_token_balance", asset, owner)
        return self.balance

    def send_token_transfer(self, asset: str, sender: str, recipient: str, amount: int) -> str:
        self._record("send_token_transfer", asset, sender, recipient, amount)
        return self.tx_hash

    def wait_for_confirmation(self, tx_hash: str, confirmations: int = 1, timeout: float = 120.0):
        self._record("wait_for_confirmation", tx_hash, confirmations)
        return {"transactionHash": tx_hash, "status": 1}

    def sign_message(self, message: str) -> str:
        self._record("sign_message", message)
        return "0x" + "00" * 65


def build_option(
    network: str = "base-sepolia",
    asset: str = "0xUSDC",
    pay_to: str = "0xMerchant",
    amount: str = "1000000",
    scheme: str = "exact",
) -> dict[str, Any]:
    return {
        "scheme": scheme,
        "network": network,
        "resource": "https://example.com/report",
        "payTo": pay_to,
        "asset": asset,
        "maxAmountRequired": amount,
        "extra": {"name": "USD Coin", "decimals": 6},
    }


def create_response(
    status_code: int,
    body: Any = None,
    headers: Optional[dict[str, str]] = None,
) -> Response:
    response = Response()
    response.status_code = status_code
    if body is None:
        response._content = b""
    elif isinstance(body, bytes):
        response._content = body
    else:
        response._content = json.dumps(body).encode("utf-8")
    response.headers = CaseInsensitiveDict(headers or {})
    return response


def payment_required_response(*options: dict[str, Any]) -> Response:
    return create_response(
        402,
        {"x402Version": 1, "error": "Payment Required", "accepts": list(options)},
    )

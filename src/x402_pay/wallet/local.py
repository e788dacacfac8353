"""Wallet backend holding a local private key and talking to chains over web3."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3
from web3.exceptions import TimeExhausted

from x402_pay.errors import CHAIN_DISCONNECTED, UNRECOGNIZED_CHAIN, ProviderRpcError
from x402_pay.networks import ChainConfig
from x402_pay.wallet.base import (
    REQUIRED_CONFIRMATIONS,
    ConfirmationTimeout,
    TransactionReverted,
)
from x402_pay.wallet.erc20 import ERC20_ABI

if TYPE_CHECKING:
    from eth_account.signers.local import LocalAccount

logger = logging.getLogger(__name__)

Web3Factory = Callable[[str], Web3]


def http_web3_factory(timeout: float = 30) -> Web3Factory:
    def factory(rpc_url: str) -> Web3:
        return Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))

    return factory


class LocalAccountWalletProvider:
    """Wallet backed by an ``eth_account`` key and one web3 connection per chain.

    Chains are known once added, either up front through ``chains`` or later
    through :meth:`add_chain`. Switching to an unknown chain fails with code
    4902 like a browser wallet does; adding a chain also switches to it.

    Example:
        ```python
        from eth_account import Account
        from x402_pay.networks import get_chain_config

        provider = LocalAccountWalletProvider(
            Account.from_key("0x..."),
            chains=[get_chain_config("base-sepolia")],
        )
        ```
    """

    def __init__(
        self,
        account: "LocalAccount",
        *,
        chains: Iterable[ChainConfig] = (),
        web3_factory: Optional[Web3Factory] = None,
        poll_latency: float = 1.0,
    ) -> None:
        self._account = account
        self._web3_factory = web3_factory or http_web3_factory()
        self.poll_latency = poll_latency
        self._connections: dict[int, Web3] = {}
        self._chain_id: Optional[int] = None
        for config in chains:
            self._register(config)
            if self._chain_id is None:
                self._chain_id = config.chain_id

    @classmethod
    def from_key(cls, private_key: str, **kwargs: Any) -> "LocalAccountWalletProvider":
        return cls(Account.from_key(private_key), **kwargs)

    @property
    def address(self) -> str:
        return self._account.address

    def _register(self, config: ChainConfig) -> None:
        if not config.rpc_urls:
            raise ProviderRpcError(-32602, f"No RPC URL configured for {config.network}")
        self._connections[config.chain_id] = self._web3_factory(config.rpc_urls[0])

    @property
    def _web3(self) -> Web3:
        return self._connections[self.get_chain_id()]

    def get_accounts(self) -> list[str]:
        return [self._account.address]

    def get_chain_id(self) -> int:
        if self._chain_id is None:
            raise ProviderRpcError(CHAIN_DISCONNECTED, "Wallet is not connected to any chain")
        return self._chain_id

    def switch_chain(self, chain_id_hex: str) -> None:
        chain_id = int(chain_id_hex, 16)
        if chain_id not in self._connections:
            raise ProviderRpcError(UNRECOGNIZED_CHAIN, f"Unrecognized chain ID {chain_id_hex}")
        self._chain_id = chain_id

    def add_chain(self, config: ChainConfig) -> None:
        self._register(config)
        self._chain_id = config.chain_id
        logger.info("Added chain %s (%s)", config.chain_name, config.chain_id)

    def _token(self, asset: str):
        return self._web3.eth.contract(
            address=Web3.to_checksum_address(asset),
            abi=ERC20_ABI,
        )

    def get_token_balance(self, asset: str, owner: str) -> int:
        return self._token(asset).functions.balanceOf(
            Web3.to_checksum_address(owner)
        ).call()

    def send_token_transfer(
        self,
        asset: str,
        sender: str,
        recipient: str,
        amount: int,
    ) -> str:
        w3 = self._web3
        sender = Web3.to_checksum_address(sender)
        tx = self._token(asset).functions.transfer(
            Web3.to_checksum_address(recipient),
            amount,
        ).build_transaction(
            {
                "from": sender,
                "nonce": w3.eth.get_transaction_count(sender, "pending"),
                "chainId": self.get_chain_id(),
            }
        )

        signed = self._account.sign_transaction(tx)
        tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)

    def wait_for_confirmation(
        self,
        tx_hash: str,
        confirmations: int = REQUIRED_CONFIRMATIONS,
        timeout: float = 120.0,
    ) -> Any:
        w3 = self._web3
        started = time.monotonic()
        try:
            receipt = w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=timeout,
                poll_latency=self.poll_latency,
            )
        except TimeExhausted as exc:
            raise ConfirmationTimeout(tx_hash, timeout) from exc

        if receipt["status"] == 0:
            raise TransactionReverted(tx_hash)

        while w3.eth.block_number - receipt["blockNumber"] + 1 < confirmations:
            if time.monotonic() - started >= timeout:
                raise ConfirmationTimeout(tx_hash, timeout)
            time.sleep(self.poll_latency)
        return receipt

    def sign_message(self, message: str) -> str:
        signed = self._account.sign_message(encode_defunct(text=message))
        return Web3.to_hex(signed.signature)

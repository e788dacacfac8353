"""Networks the client knows how to pay on.

The registry maps the network token a server puts in ``PaymentOption.network``
to the parameters a wallet needs to reach that chain. Supporting a new chain
means adding one entry to ``DEFAULT_CHAINS``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel


class NativeCurrency(BaseModel):
    name: str
    symbol: str
    decimals: int = 18

    model_config = ConfigDict(frozen=True)


class ChainConfig(BaseModel):
    """Connection parameters for one EVM chain."""

    network: str
    chain_id: int
    chain_name: str
    native_currency: NativeCurrency
    rpc_urls: tuple[str, ...] = Field(default_factory=tuple)
    block_explorer_urls: tuple[str, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    @field_validator("chain_id")
    def validate_chain_id(cls, v):
        if v <= 0:
            raise ValueError("chain_id must be a positive integer")
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def chain_id_hex(self) -> str:
        return hex(self.chain_id)

    def to_add_chain_params(self) -> dict[str, Any]:
        """Render the ``wallet_addEthereumChain`` parameter object."""
        return {
            "chainId": self.chain_id_hex,
            "chainName": self.chain_name,
            "nativeCurrency": self.native_currency.model_dump(),
            "rpcUrls": list(self.rpc_urls),
            "blockExplorerUrls": list(self.block_explorer_urls),
        }


_ETH = NativeCurrency(name="Ether", symbol="ETH", decimals=18)
_AVAX = NativeCurrency(name="Avalanche", symbol="AVAX", decimals=18)

DEFAULT_CHAINS: tuple[ChainConfig, ...] = (
    ChainConfig(
        network="base-sepolia",
        chain_id=84532,
        chain_name="Base Sepolia",
        native_currency=_ETH,
        rpc_urls=("https://sepolia.base.org",),
        block_explorer_urls=("https://sepolia.basescan.org",),
    ),
    ChainConfig(
        network="base",
        chain_id=8453,
        chain_name="Base",
        native_currency=_ETH,
        rpc_urls=("https://mainnet.base.org",),
        block_explorer_urls=("https://basescan.org",),
    ),
    ChainConfig(
        network="avalanche-fuji",
        chain_id=43113,
        chain_name="Avalanche Fuji Testnet",
        native_currency=_AVAX,
        rpc_urls=("https://api.avax-test.network/ext/bc/C/rpc",),
        block_explorer_urls=("https://testnet.snowtrace.io",),
    ),
    ChainConfig(
        network="avalanche",
        chain_id=43114,
        chain_name="Avalanche C-Chain",
        native_currency=_AVAX,
        rpc_urls=("https://api.avax.network/ext/bc/C/rpc",),
        block_explorer_urls=("https://snowtrace.io",),
    ),
)


class NetworkRegistry:
    """Fixed lookup table from network token to :class:`ChainConfig`."""

    def __init__(self, chains: Optional[Iterable[ChainConfig]] = None) -> None:
        self._chains: dict[str, ChainConfig] = {}
        for chain in DEFAULT_CHAINS if chains is None else chains:
            if chain.network in self._chains:
                raise ValueError(f"Duplicate network in registry: {chain.network}")
            self._chains[chain.network] = chain

    def lookup(self, network: str) -> Optional[ChainConfig]:
        return self._chains.get(network)

    def by_chain_id(self, chain_id: int) -> Optional[ChainConfig]:
        for chain in self._chains.values():
            if chain.chain_id == chain_id:
                return chain
        return None

    @property
    def networks(self) -> list[str]:
        return list(self._chains)

    def with_rpc_overrides(self, overrides: Mapping[str, str]) -> "NetworkRegistry":
        """Return a copy whose listed networks use the given RPC URL first."""
        chains = []
        for chain in self._chains.values():
            url = overrides.get(chain.network)
            if url:
                rest = tuple(u for u in chain.rpc_urls if u != url)
                chain = chain.model_copy(update={"rpc_urls": (url,) + rest})
            chains.append(chain)
        return NetworkRegistry(chains)

    def __contains__(self, network: object) -> bool:
        return network in self._chains

    def __len__(self) -> int:
        return len(self._chains)


def get_chain_config(network: str) -> Optional[ChainConfig]:
    """Look up ``network`` in the default registry."""
    return _DEFAULT_REGISTRY.lookup(network)


_DEFAULT_REGISTRY = NetworkRegistry()

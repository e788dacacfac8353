import logging

from x402_pay.errors import (
    ProviderErrorKind,
    classify_provider_error,
    translate_provider_error,
)
from x402_pay.networks import ChainConfig
from x402_pay.wallet.base import WalletProvider

logger = logging.getLogger(__name__)


class ChainSwitcher:
    """Put the wallet on the chain a payment option needs."""

    def __init__(self, provider: WalletProvider):
        self.provider = provider

    def ensure_chain(self, config: ChainConfig) -> None:
        """Switch the wallet to ``config``'s chain unless it is already there.

        A wallet that does not know the chain is asked to add it, and adding
        is taken to also switch. The chain is not re-checked afterwards; a
        wallet left on the wrong chain fails later when the transfer is signed.

        Raises:
            ChainSwitchRejected: The user declined the switch or the addition.
            ChainSwitchFailed: Any other wallet error.
        """
        try:
            current = self.provider.get_chain_id()
        except Exception as exc:
            raise translate_provider_error(exc, "switch") from exc

        if current == config.chain_id:
            logger.debug("Wallet already on chain %s", current)
            return

        logger.info(
            "Switching wallet from chain %s to %s (%s)",
            current,
            config.chain_id,
            config.network,
        )
        try:
            self.provider.switch_chain(config.chain_id_hex)
            return
        except Exception as exc:
            if classify_provider_error(exc) is not ProviderErrorKind.UNRECOGNIZED_CHAIN:
                raise translate_provider_error(exc, "switch") from exc

        logger.info("Wallet does not know chain %s, adding it", config.chain_id)
        try:
            self.provider.add_chain(config)
        except Exception as exc:
            raise translate_provider_error(exc, "switch") from exc

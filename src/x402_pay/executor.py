import logging
from typing import Optional

from x402_pay.chains import ChainSwitcher
from x402_pay.errors import (
    InsufficientBalance,
    TransactionFailed,
    translate_provider_error,
)
from x402_pay.networks import ChainConfig
from x402_pay.types import PaymentOption
from x402_pay.wallet.base import REQUIRED_CONFIRMATIONS, WalletProvider

logger = logging.getLogger(__name__)


class PaymentExecutor:
    """Send the token transfer a payment option asks for."""

    def __init__(
        self,
        provider: WalletProvider,
        *,
        switcher: Optional[ChainSwitcher] = None,
        confirmation_timeout: float = 120.0,
    ):
        self.provider = provider
        self.switcher = switcher or ChainSwitcher(provider)
        self.confirmation_timeout = confirmation_timeout

    def pay(self, option: PaymentOption, config: ChainConfig) -> str:
        """Switch chains if needed, then transfer. Returns the transaction hash."""
        self.switcher.ensure_chain(config)
        return self.transfer(option, config)

    def transfer(self, option: PaymentOption, config: ChainConfig) -> str:
        """Transfer ``option``'s amount, assuming the wallet is on ``config``'s chain.

        The balance is checked before anything is signed, so an underfunded
        wallet never sees a prompt. Returns once the transfer has one
        confirmation.

        Raises:
            InsufficientBalance: Balance is below ``max_amount_required``.
            UserRejected: The user declined to sign.
            TransactionFailed: Any other wallet or chain error.
        """
        payer = self._payer()
        required = option.amount

        try:
            available = self.provider.get_token_balance(option.asset, payer)
        except Exception as exc:
            raise translate_provider_error(exc, "transfer") from exc

        if available < required:
            logger.warning(
                "Balance of %s on %s is %s, %s required",
                option.asset,
                config.network,
                available,
                required,
            )
            raise InsufficientBalance(required=required, available=available)

        try:
            tx_hash = self.provider.send_token_transfer(
                option.asset,
                payer,
                option.pay_to,
                required,
            )
        except Exception as exc:
            raise translate_provider_error(exc, "transfer") from exc
        logger.info("Submitted transfer %s on %s", tx_hash, config.network)

        try:
            self.provider.wait_for_confirmation(
                tx_hash,
                confirmations=REQUIRED_CONFIRMATIONS,
                timeout=self.confirmation_timeout,
            )
        except Exception as exc:
            raise translate_provider_error(exc, "transfer", transaction_hash=tx_hash) from exc
        logger.info("Transfer %s confirmed", tx_hash)

        return tx_hash

    def _payer(self) -> str:
        try:
            accounts = self.provider.get_accounts()
        except Exception as exc:
            raise translate_provider_error(exc, "transfer") from exc
        if not accounts:
            raise TransactionFailed("Wallet has no account to pay from")
        return accounts[0]

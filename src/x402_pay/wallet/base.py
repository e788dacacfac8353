"""Wallet capability interface and the session object that owns a connection."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, Protocol, runtime_checkable

from x402_pay.errors import PaymentInProgressError
from x402_pay.networks import ChainConfig

logger = logging.getLogger(__name__)

# Confirmations required before a transfer counts as paid
REQUIRED_CONFIRMATIONS = 1


@runtime_checkable
class WalletProvider(Protocol):
    """What the payment flow needs from a wallet.

    Implementations raise their native errors; the payment flow translates
    them with :func:`x402_pay.errors.translate_provider_error`. A chain the
    wallet does not know must be reported as a
    :class:`~x402_pay.errors.ProviderRpcError` with code 4902.
    """

    def get_accounts(self) -> list[str]: ...

    def get_chain_id(self) -> int: ...

    def switch_chain(self, chain_id_hex: str) -> None: ...

    def add_chain(self, config: ChainConfig) -> None: ...

    def get_token_balance(self, asset: str, owner: str) -> int: ...

    def send_token_transfer(
        self,
        asset: str,
        sender: str,
        recipient: str,
        amount: int,
    ) -> str: ...

    def wait_for_confirmation(
        self,
        tx_hash: str,
        confirmations: int = REQUIRED_CONFIRMATIONS,
        timeout: float = 120.0,
    ) -> Any: ...

    def sign_message(self, message: str) -> str: ...


class WalletNotConnectedError(Exception):
    """Raised when a session has no provider and no way to create one."""


class TransactionReverted(Exception):
    def __init__(self, tx_hash: str):
        self.tx_hash = tx_hash
        super().__init__(f"Transaction {tx_hash} reverted")


class ConfirmationTimeout(Exception):
    def __init__(self, tx_hash: str, timeout: float):
        self.tx_hash = tx_hash
        self.timeout = timeout
        super().__init__(
            f"Transaction {tx_hash} was not confirmed within {timeout:g} seconds"
        )


class WalletSession:
    """Owns one wallet connection and the single in-flight payment guard.

    The provider is created on first use by ``provider_factory`` (or installed
    with :meth:`attach`) and reused by every later payment until
    :meth:`disconnect` is called.
    """

    def __init__(
        self,
        provider_factory: Optional[Callable[[], WalletProvider]] = None,
    ) -> None:
        self._provider_factory = provider_factory
        self._provider: Optional[WalletProvider] = None
        self._connect_lock = threading.Lock()
        self._payment_lock = threading.Lock()

    @property
    def connected(self) -> bool:
        return self._provider is not None

    @property
    def provider(self) -> WalletProvider:
        return self.connect()

    def connect(self) -> WalletProvider:
        with self._connect_lock:
            if self._provider is None:
                if self._provider_factory is None:
                    raise WalletNotConnectedError("No wallet provider attached")
                self._provider = self._provider_factory()
                logger.info("Connected wallet provider %s", type(self._provider).__name__)
            return self._provider

    def attach(self, provider: WalletProvider) -> None:
        with self._connect_lock:
            self._provider = provider
        logger.info("Attached wallet provider %s", type(provider).__name__)

    def disconnect(self) -> None:
        with self._connect_lock:
            self._provider = None

    @property
    def payment_in_flight(self) -> bool:
        return self._payment_lock.locked()

    @contextmanager
    def payment_slot(self) -> Iterator[None]:
        """Hold the session's only payment slot for the duration of a flow.

        Raises:
            PaymentInProgressError: If another flow already holds the slot.
        """
        if not self._payment_lock.acquire(blocking=False):
            raise PaymentInProgressError("A payment is already in progress for this wallet")
        try:
            yield
        finally:
            self._payment_lock.release()

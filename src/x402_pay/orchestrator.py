"""The 402 payment flow.

``PaymentOrchestrator.run`` requests a resource and, when the server answers
402 Payment Required, picks an option, puts the wallet on the right chain,
pays, and retries the request once with the proof attached::

    IDLE -> REQUESTING -> AWAITING_PAYMENT -> NEGOTIATING -> SWITCHING
         -> PAYING -> RETRYING -> SUCCEEDED | FAILED

A resource that needs no payment goes straight from REQUESTING to SUCCEEDED.
Any error ends the flow in FAILED with a typed :class:`PaymentError`; nothing
is retried automatically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

import requests
from pydantic import ValidationError

from x402_pay.encoding import decode_settlement_header, encode_proof
from x402_pay.errors import (
    PaymentError,
    RequestFailed,
    ServerRejectedProof,
    TransactionFailed,
)
from x402_pay.executor import PaymentExecutor
from x402_pay.matcher import PaymentOptionMatcher
from x402_pay.networks import NetworkRegistry
from x402_pay.types import PaymentAttempt, PaymentRequiredResponse, SettlementReceipt
from x402_pay.wallet.base import WalletSession

logger = logging.getLogger(__name__)

X_PAYMENT_HEADER = "X-PAYMENT"
X_PAYMENT_RESPONSE_HEADER = "X-PAYMENT-RESPONSE"

# Sends the original request again with extra headers merged in
Resend = Callable[[Optional[dict[str, str]]], requests.Response]


class PaymentState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    AWAITING_PAYMENT = "awaiting_payment"
    NEGOTIATING = "negotiating"
    SWITCHING = "switching"
    PAYING = "paying"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class PaymentOutcome:
    state: PaymentState
    transitions: list[PaymentState]
    response: Optional[requests.Response] = None
    attempt: Optional[PaymentAttempt] = None
    error: Optional[PaymentError] = None
    settlement: Optional[SettlementReceipt] = None

    @property
    def succeeded(self) -> bool:
        return self.state is PaymentState.SUCCEEDED

    @property
    def paid(self) -> bool:
        return self.attempt is not None and self.attempt.transaction_hash is not None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


@dataclass
class _Flow:
    transitions: list[PaymentState] = field(default_factory=lambda: [PaymentState.IDLE])
    attempt: Optional[PaymentAttempt] = None

    @property
    def state(self) -> PaymentState:
        return self.transitions[-1]

    def enter(self, state: PaymentState) -> None:
        logger.debug("Payment flow %s -> %s", self.state.value, state.value)
        self.transitions.append(state)

    def succeed(
        self,
        response: requests.Response,
        settlement: Optional[SettlementReceipt] = None,
    ) -> PaymentOutcome:
        self.enter(PaymentState.SUCCEEDED)
        return PaymentOutcome(
            state=PaymentState.SUCCEEDED,
            transitions=list(self.transitions),
            response=response,
            attempt=self.attempt,
            settlement=settlement,
        )

    def fail(
        self,
        error: PaymentError,
        response: Optional[requests.Response] = None,
    ) -> PaymentOutcome:
        failed_in = self.state
        self.enter(PaymentState.FAILED)
        if error.severity == "info":
            logger.warning("Payment flow stopped in %s: %s", failed_in.value, error)
        else:
            logger.error("Payment flow failed in %s: %s", failed_in.value, error)
        return PaymentOutcome(
            state=PaymentState.FAILED,
            transitions=list(self.transitions),
            response=response,
            attempt=self.attempt,
            error=error,
        )


def _is_success(response: requests.Response) -> bool:
    return 200 <= response.status_code < 300


class PaymentOrchestrator:
    """Drive one 402 payment flow per call.

    Args:
        wallet_session: Session owning the wallet connection. Its payment
            slot makes flows sharing the session run one at a time.
        registry: Networks the client can pay on.
        http_session: ``requests`` session carrying the caller's cookies and
            auth for the resource server.
        payment_header: Header the proof is sent in on the retry.
    """

    def __init__(
        self,
        wallet_session: WalletSession,
        *,
        registry: Optional[NetworkRegistry] = None,
        http_session: Optional[requests.Session] = None,
        payment_header: str = X_PAYMENT_HEADER,
        request_timeout: float = 30,
        confirmation_timeout: float = 120.0,
    ) -> None:
        self.wallet_session = wallet_session
        self.registry = registry or NetworkRegistry()
        self.matcher = PaymentOptionMatcher(self.registry)
        self.http_session = http_session or requests.Session()
        self.payment_header = payment_header
        self.request_timeout = request_timeout
        self.confirmation_timeout = confirmation_timeout

    def run(self, url: str, method: str = "GET", **request_kwargs: Any) -> PaymentOutcome:
        """Request ``url`` and pay for it if the server asks.

        Raises:
            PaymentInProgressError: Another flow is running on the same wallet
                session. Every other failure is returned in the outcome.
        """
        request_kwargs.setdefault("timeout", self.request_timeout)

        def resend(extra_headers: Optional[dict[str, str]] = None) -> requests.Response:
            kwargs = dict(request_kwargs)
            if extra_headers:
                kwargs["headers"] = {**(kwargs.get("headers") or {}), **extra_headers}
            return self.http_session.request(method, url, **kwargs)

        with self.wallet_session.payment_slot():
            flow = _Flow()
            flow.enter(PaymentState.REQUESTING)
            try:
                response = resend()
            except requests.RequestException as exc:
                return flow.fail(RequestFailed(f"Request to {url} failed: {exc}"))
            return self._negotiate(flow, response, resend)

    def fetch(self, url: str, method: str = "GET", **request_kwargs: Any) -> requests.Response:
        """Like :meth:`run` but return the response or raise the flow's error."""
        outcome = self.run(url, method, **request_kwargs)
        outcome.raise_for_error()
        return outcome.response

    def handle_payment_required(
        self,
        response: requests.Response,
        resend: Resend,
    ) -> PaymentOutcome:
        """Continue a flow whose first request was already sent by the caller."""
        with self.wallet_session.payment_slot():
            flow = _Flow()
            flow.enter(PaymentState.REQUESTING)
            return self._negotiate(flow, response, resend)

    def _negotiate(
        self,
        flow: _Flow,
        response: requests.Response,
        resend: Resend,
    ) -> PaymentOutcome:
        if _is_success(response):
            return flow.succeed(response)

        if response.status_code != 402:
            return flow.fail(
                RequestFailed(
                    f"Server responded with {response.status_code}",
                    status_code=response.status_code,
                ),
                response,
            )

        flow.enter(PaymentState.AWAITING_PAYMENT)
        try:
            payment_required = self._parse_payment_required(response)

            flow.enter(PaymentState.NEGOTIATING)
            match = self.matcher.select_option(payment_required.accepts)
            flow.attempt = attempt = PaymentAttempt.from_match(match)

            executor = PaymentExecutor(
                self._wallet(),
                confirmation_timeout=self.confirmation_timeout,
            )

            flow.enter(PaymentState.SWITCHING)
            executor.switcher.ensure_chain(attempt.config)

            flow.enter(PaymentState.PAYING)
            attempt.transaction_hash = executor.transfer(attempt.option, attempt.config)
            attempt.proof = encode_proof(attempt.transaction_hash, attempt.config.chain_id)
        except PaymentError as error:
            return flow.fail(error, response)

        flow.enter(PaymentState.RETRYING)
        return self._retry(flow, attempt, resend)

    def _retry(
        self,
        flow: _Flow,
        attempt: PaymentAttempt,
        resend: Resend,
    ) -> PaymentOutcome:
        try:
            retry_response = resend({self.payment_header: attempt.proof})
        except requests.RequestException as exc:
            return flow.fail(
                ServerRejectedProof(
                    f"Retry with payment proof failed: {exc}",
                    transaction_hash=attempt.transaction_hash,
                    proof=attempt.proof,
                )
            )

        if not _is_success(retry_response):
            return flow.fail(
                ServerRejectedProof(
                    f"Server responded with {retry_response.status_code} "
                    f"to payment {attempt.transaction_hash}",
                    transaction_hash=attempt.transaction_hash,
                    proof=attempt.proof,
                    status_code=retry_response.status_code,
                ),
                retry_response,
            )

        logger.info("Payment %s accepted by server", attempt.transaction_hash)
        return flow.succeed(retry_response, self._read_settlement(retry_response))

    def _wallet(self):
        try:
            return self.wallet_session.provider
        except Exception as exc:
            raise TransactionFailed(f"Wallet is not available: {exc}") from exc

    @staticmethod
    def _parse_payment_required(response: requests.Response) -> PaymentRequiredResponse:
        try:
            return PaymentRequiredResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise RequestFailed(
                f"Invalid payment required response: {exc}",
                status_code=response.status_code,
            ) from exc

    @staticmethod
    def _read_settlement(response: requests.Response) -> Optional[SettlementReceipt]:
        header = response.headers.get(X_PAYMENT_RESPONSE_HEADER)
        if not header:
            return None
        try:
            return decode_settlement_header(header)
        except (ValueError, ValidationError) as exc:
            logger.debug("Ignoring undecodable %s header: %s", X_PAYMENT_RESPONSE_HEADER, exc)
            return None

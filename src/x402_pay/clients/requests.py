"""requests integration that pays for 402 responses transparently.

The adapter only notices the 402; everything after that is delegated to
:class:`~x402_pay.orchestrator.PaymentOrchestrator`.
"""

from __future__ import annotations

from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter

from x402_pay.networks import NetworkRegistry
from x402_pay.orchestrator import PaymentOrchestrator
from x402_pay.wallet.base import WalletSession


class x402PaymentAdapter(HTTPAdapter):
    """HTTP adapter that handles 402 Payment Required responses.

    Raises the flow's :class:`~x402_pay.errors.PaymentError` when payment
    fails, including when the server rejects the proof.
    """

    def __init__(self, orchestrator: PaymentOrchestrator, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.orchestrator = orchestrator

    def send(
        self,
        request: requests.PreparedRequest,
        **kwargs: Any,
    ) -> requests.Response:
        response = super().send(request, **kwargs)
        if response.status_code != 402:
            return response

        def resend(extra_headers: Optional[dict[str, str]] = None) -> requests.Response:
            retry_request = request.copy()
            if extra_headers:
                retry_request.headers.update(extra_headers)
            return HTTPAdapter.send(self, retry_request, **kwargs)

        outcome = self.orchestrator.handle_payment_required(response, resend)
        outcome.raise_for_error()
        return outcome.response


def x402_payment_adapter(
    wallet_session: WalletSession,
    *,
    registry: Optional[NetworkRegistry] = None,
    payment_header: str = "X-PAYMENT",
    confirmation_timeout: float = 120.0,
    **kwargs: Any,
) -> x402PaymentAdapter:
    """Create an HTTP adapter with 402 payment handling.

    Example:
        ```python
        import requests
        from x402_pay import WalletSession
        from x402_pay.clients.requests import x402_payment_adapter

        session = requests.Session()
        adapter = x402_payment_adapter(WalletSession(make_provider))
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        response = session.get("https://api.example.com/paid")
        ```
    """
    orchestrator = PaymentOrchestrator(
        wallet_session,
        registry=registry,
        payment_header=payment_header,
        confirmation_timeout=confirmation_timeout,
    )
    return x402PaymentAdapter(orchestrator, **kwargs)


def x402_requests(
    wallet_session: WalletSession,
    *,
    session: Optional[requests.Session] = None,
    **adapter_kwargs: Any,
) -> requests.Session:
    """Return a session with the payment adapter mounted for http and https."""
    session = session or requests.Session()
    adapter = x402_payment_adapter(wallet_session, **adapter_kwargs)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session

"""
HTTP client integrations for x402 payment handling.

    from x402_pay.clients.requests import x402_requests
"""

from x402_pay.clients.requests import (
    x402PaymentAdapter,
    x402_payment_adapter,
    x402_requests,
)

__all__ = [
    "x402PaymentAdapter",
    "x402_payment_adapter",
    "x402_requests",
]

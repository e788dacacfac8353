"""
Command-line interface for fetching a 402-protected resource.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, Sequence, Tuple

from x402_pay.config import ConfigError, build_registry, load_settings
from x402_pay.errors import describe_error
from x402_pay.orchestrator import PaymentOrchestrator
from x402_pay.wallet import LocalAccountWalletProvider, WalletSession, http_web3_factory

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 2


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _header(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Headers must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Header name must not be empty")
    return key, val


def _collect_headers(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for key, value in pairs:
        headers[key] = value
    return headers


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="x402-pay",
        description="Fetch a resource, paying on-chain if the server asks for it",
    )
    parser.add_argument("url", help="Resource URL")
    parser.add_argument("--method", default="GET", help="HTTP method (default: GET)")
    parser.add_argument("--data", default=None, help="Request body")
    parser.add_argument(
        "--header",
        action="append",
        type=_header,
        metavar="KEY=VALUE",
        default=None,
        help="Extra request header, may be repeated",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing X402_* settings (default: .env)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Python logging level (default: X402_LOG_LEVEL or INFO)",
    )
    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(env_file=args.env_file)
        private_key = settings.require_private_key()
    except ConfigError as exc:
        _configure_logging(args.log_level or "INFO")
        logging.error("Invalid configuration: %s", exc)
        return EXIT_ERROR

    _configure_logging(args.log_level or settings.log_level)
    registry = build_registry(settings)

    def connect_wallet() -> LocalAccountWalletProvider:
        return LocalAccountWalletProvider.from_key(
            private_key,
            chains=[registry.lookup(network) for network in registry.networks],
            web3_factory=http_web3_factory(settings.request_timeout),
        )

    orchestrator = PaymentOrchestrator(
        WalletSession(connect_wallet),
        registry=registry,
        payment_header=settings.payment_header,
        request_timeout=settings.request_timeout,
        confirmation_timeout=settings.confirmation_timeout,
    )
    outcome = orchestrator.run(
        args.url,
        args.method.upper(),
        data=args.data,
        headers=_collect_headers(args.header or ()),
    )

    if outcome.error is not None:
        severity, message = describe_error(outcome.error)
        if outcome.paid:
            logging.error("Transaction hash: %s", outcome.attempt.transaction_hash)
        if severity == "info":
            logging.warning("%s", message)
            return EXIT_CANCELLED
        logging.error("%s (%s)", message, outcome.error)
        return EXIT_ERROR

    if outcome.paid:
        logging.info("Paid with transaction %s", outcome.attempt.transaction_hash)
    sys.stdout.write(outcome.response.text)
    return EXIT_OK


def main() -> None:
    sys.exit(run_cli())

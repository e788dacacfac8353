import logging
from typing import Optional, Sequence

from x402_pay.errors import UnsupportedNetwork
from x402_pay.networks import NetworkRegistry
from x402_pay.types import MatchedOption, PaymentOption

logger = logging.getLogger(__name__)


class PaymentOptionMatcher:
    """Pick the payment option to fulfil from a server's ``accepts`` list."""

    def __init__(self, registry: Optional[NetworkRegistry] = None):
        self.registry = registry or NetworkRegistry()

    def select_option(self, options: Sequence[PaymentOption]) -> MatchedOption:
        """Return the first option whose network the registry knows.

        The server lists options in order of preference, so the list is never
        re-ranked here.

        Raises:
            UnsupportedNetwork: If no option's network is in the registry. The
                error lists every offered network in the order given.
        """
        for option in options:
            config = self.registry.lookup(option.network)
            if config is None:
                logger.debug("Skipping option on unsupported network %s", option.network)
                continue
            logger.info(
                "Selected %s payment of %s on %s to %s",
                option.scheme,
                option.max_amount_required,
                option.network,
                option.pay_to,
            )
            return MatchedOption(option=option, config=config)

        raise UnsupportedNetwork(option.network for option in options)


def select_option(
    options: Sequence[PaymentOption],
    registry: Optional[NetworkRegistry] = None,
) -> MatchedOption:
    return PaymentOptionMatcher(registry).select_option(options)

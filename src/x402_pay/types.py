from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from x402_pay.networks import ChainConfig


class PaymentOption(BaseModel):
    """One way the resource server is willing to be paid."""

    scheme: str
    network: str
    resource: str = ""
    pay_to: str
    asset: str
    max_amount_required: str
    description: Optional[str] = None
    mime_type: Optional[str] = None
    max_timeout_seconds: Optional[int] = None
    output_schema: Optional[Any] = None
    extra: Optional[dict[str, Any]] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        frozen=True,
    )

    @field_validator("max_amount_required")
    def validate_max_amount_required(cls, v):
        try:
            amount = int(v)
        except ValueError:
            raise ValueError(
                "max_amount_required must be an integer encoded as a string"
            )
        if amount < 0:
            raise ValueError("max_amount_required must not be negative")
        return v

    @property
    def amount(self) -> int:
        """Required amount in the asset's smallest unit."""
        return int(self.max_amount_required)


# Returned by a server as json alongside a 402 response code
class PaymentRequiredResponse(BaseModel):
    x402_version: int = 1
    accepts: list[PaymentOption]
    error: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    @property
    def networks(self) -> list[str]:
        return [option.network for option in self.accepts]


class PaymentProof(BaseModel):
    """Evidence of payment carried in the retry header."""

    hash: str
    chain_id: int = Field(alias="chainId")

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
    )


class SettlementReceipt(BaseModel):
    """Decoded ``X-PAYMENT-RESPONSE`` header sent back with a paid resource."""

    success: bool
    transaction: Optional[str] = None
    network: Optional[str] = None
    payer: Optional[str] = None
    error_reason: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


@dataclass(frozen=True)
class MatchedOption:
    option: PaymentOption
    config: ChainConfig


@dataclass
class PaymentAttempt:
    """State of one payment flow. Never shared between flows."""

    option: PaymentOption
    config: ChainConfig
    transaction_hash: Optional[str] = None
    proof: Optional[str] = None

    @classmethod
    def from_match(cls, match: MatchedOption) -> "PaymentAttempt":
        return cls(option=match.option, config=match.config)

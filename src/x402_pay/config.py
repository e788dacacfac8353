"""
Settings for the payment client.

Values come from, in increasing priority: a ``.env`` file, the process
environment, and explicit overrides.
"""

from __future__ import annotations

import os
from typing import Mapping, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from x402_pay.networks import NetworkRegistry

__all__ = [
    "ClientSettings",
    "ConfigError",
    "build_registry",
    "load_settings",
]

RPC_URL_PREFIX = "X402_RPC_URL_"

_ENV_TO_FIELD = {
    "X402_PRIVATE_KEY": "private_key",
    "X402_PAYMENT_HEADER": "payment_header",
    "X402_REQUEST_TIMEOUT": "request_timeout",
    "X402_CONFIRMATION_TIMEOUT": "confirmation_timeout",
    "X402_LOG_LEVEL": "log_level",
}


class ConfigError(Exception):
    """Raised when the supplied configuration is invalid."""


class ClientSettings(BaseModel):
    private_key: Optional[str] = Field(default=None, repr=False)
    payment_header: str = "X-PAYMENT"
    request_timeout: float = 30
    confirmation_timeout: float = 120
    log_level: str = "INFO"
    rpc_urls: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @field_validator("private_key")
    def normalize_private_key(cls, v):
        if v is None:
            return v
        key = v.strip()
        if not key:
            return None
        if not key.startswith("0x"):
            key = "0x" + key
        if len(key) != 66:
            raise ValueError("private key must be 32 bytes (64 hex chars)")
        return key

    @field_validator("request_timeout", "confirmation_timeout")
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    def require_private_key(self) -> str:
        if self.private_key is None:
            raise ConfigError("X402_PRIVATE_KEY must be provided")
        return self.private_key


def _network_from_env_key(key: str) -> str:
    return key[len(RPC_URL_PREFIX):].lower().replace("_", "-")


def load_settings(
    *,
    env_file: Optional[str] = ".env",
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> ClientSettings:
    """Assemble :class:`ClientSettings` from ``X402_*`` variables.

    ``environ`` defaults to :data:`os.environ`. Set ``env_file`` to ``None``
    to skip the ``.env`` file. ``overrides`` always win.
    """
    merged: dict[str, str] = {}
    if env_file is not None:
        merged.update(
            {k: v for k, v in dotenv_values(env_file).items() if v is not None}
        )
    merged.update(os.environ if environ is None else environ)
    merged.update(overrides or {})

    values: dict[str, object] = {}
    rpc_urls: dict[str, str] = {}
    for key, value in merged.items():
        if key.startswith(RPC_URL_PREFIX):
            rpc_urls[_network_from_env_key(key)] = value
        elif key in _ENV_TO_FIELD:
            values[_ENV_TO_FIELD[key]] = value
    values["rpc_urls"] = rpc_urls

    try:
        return ClientSettings.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def build_registry(
    settings: ClientSettings,
    registry: Optional[NetworkRegistry] = None,
) -> NetworkRegistry:
    """Apply the settings' RPC overrides to ``registry`` (default networks if omitted)."""
    registry = registry or NetworkRegistry()
    if not settings.rpc_urls:
        return registry
    return registry.with_rpc_overrides(settings.rpc_urls)

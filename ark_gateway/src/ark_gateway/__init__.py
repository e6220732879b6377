"""
ark_gateway - HTTP/JSON gateway for an Ark + on-chain Bitcoin wallet.

Exposes receive, send, withdraw, balance, UTXO and fee estimation endpoints
on top of a single shared wallet engine.
"""

__version__ = "0.1.0"

from ark_gateway.errors import (
    EngineError,
    EngineTimeout,
    FatalStartupError,
    GatewayError,
    InvalidArgument,
    MalformedRequest,
)

__all__ = [
    "EngineError",
    "EngineTimeout",
    "FatalStartupError",
    "GatewayError",
    "InvalidArgument",
    "MalformedRequest",
]

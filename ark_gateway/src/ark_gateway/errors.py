"""
Gateway error taxonomy.

Every error carries the HTTP status the gateway answers with.
"""

from __future__ import annotations


class GatewayError(Exception):
    """Base class for errors surfaced to HTTP clients."""

    status: int = 500


class MalformedRequest(GatewayError):
    """Request body does not parse or fails validation."""

    status = 400


class InvalidArgument(GatewayError):
    """Request parsed but carries a value outside the accepted domain."""

    status = 400


class EngineError(GatewayError):
    """Any failure reported by the wallet engine or its fee-rate oracle."""

    status = 500


class EngineTimeout(EngineError):
    """An engine call did not finish within the configured bound."""


class FaucetError(GatewayError):
    """The test-network faucet command failed."""

    status = 500


class FatalStartupError(Exception):
    """Wallet session could not be loaded, unlocked or initialized."""

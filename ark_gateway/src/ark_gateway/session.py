"""
Wallet session lifecycle.

At startup the session either unlocks the persisted wallet or creates and
initializes a new one. Any failure is fatal: the gateway must not serve
traffic without a ready wallet.
"""

from __future__ import annotations

from enum import Enum

from loguru import logger

from ark_gateway.engine.base import AddressPair, InitArgs
from ark_gateway.errors import FatalStartupError, GatewayError
from ark_gateway.guard import EngineGuard


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    UNLOCKING = "unlocking"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class WalletSession:
    """
    Owns the single wallet engine handle for the lifetime of the process.
    """

    def __init__(
        self,
        guard: EngineGuard,
        password: str,
        server_url: str,
        wallet_type: str = "singlekey",
        client_type: str = "grpc",
    ):
        self.guard = guard
        self._password = password
        self.server_url = server_url
        self.wallet_type = wallet_type
        self.client_type = client_type
        self.state = SessionState.UNINITIALIZED
        self.failure_reason: str | None = None

    @property
    def ready(self) -> bool:
        return self.state == SessionState.READY

    def _fail(self, reason: str) -> FatalStartupError:
        self.state = SessionState.FAILED
        self.failure_reason = reason
        logger.error(f"Wallet session failed: {reason}")
        return FatalStartupError(reason)

    async def start(self) -> EngineGuard:
        """
        Bring the wallet to the ready state.

        Returns:
            The guard wrapping the ready engine

        Raises:
            FatalStartupError: If detection, unlock or initialization fails
        """
        if self.state != SessionState.UNINITIALIZED:
            raise RuntimeError(f"Session already started (state: {self.state.value})")

        engine = self.guard.engine
        try:
            exists = await self.guard.reading("wallet_exists", engine.wallet_exists)
        except GatewayError as e:
            raise self._fail(f"could not load wallet store: {e}") from e

        if exists:
            logger.info("Existing wallet detected; unlocking...")
            self.state = SessionState.UNLOCKING
            try:
                await self.guard.mutating("unlock", engine.unlock, self._password)
            except GatewayError as e:
                raise self._fail(f"unlock failed: {e}") from e
        else:
            logger.info(f"No wallet found; initializing against {self.server_url}")
            self.state = SessionState.INITIALIZING
            args = InitArgs(
                wallet_type=self.wallet_type,
                client_type=self.client_type,
                server_url=self.server_url,
                password=self._password,
                with_transaction_feed=False,
            )
            try:
                await self.guard.mutating("init", engine.init, args)
            except GatewayError as e:
                raise self._fail(f"initialization failed: {e}") from e

        self.state = SessionState.READY
        logger.info("Wallet ready")
        return self.guard

    async def receive_addresses(self) -> AddressPair:
        """Get an off-chain address and its paired on-chain boarding address."""
        return await self.guard.reading("receive", self.guard.engine.receive)

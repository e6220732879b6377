"""
Payment routing between the Ark (off-chain) and on-chain settlement paths.
"""

from __future__ import annotations

from enum import Enum

from loguru import logger
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ark_gateway.engine.base import Receiver, WalletEngine
from ark_gateway.errors import InvalidArgument
from ark_gateway.guard import EngineGuard

MAX_AMOUNT = 2**64 - 1


class SettlementNetwork(str, Enum):
    ARK = "ark"
    ONCHAIN = "onchain"


def parse_network(value: str) -> SettlementNetwork:
    """Case-insensitive network selector; anything else is InvalidArgument."""
    try:
        return SettlementNetwork(value.strip().lower())
    except ValueError:
        raise InvalidArgument(f"invalid network: {value!r}") from None


class SendRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Validated by the router so that unknown values map to InvalidArgument
    network: str
    recipient: str = Field(..., min_length=1, validation_alias=AliasChoices("recipient", "to"))
    amount: int = Field(..., ge=0, le=MAX_AMOUNT, strict=True)


class WithdrawRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    network: str | None = None
    recipient: str = Field(..., min_length=1, validation_alias=AliasChoices("recipient", "to"))
    amount: int = Field(..., ge=0, le=MAX_AMOUNT, strict=True)


class PaymentRouter:
    def __init__(self, guard: EngineGuard):
        self.guard = guard

    @property
    def engine(self) -> WalletEngine:
        return self.guard.engine

    async def send(self, request: SendRequest) -> str:
        """
        Dispatch a payment to the selected network.

        Returns:
            The resulting transaction id

        Raises:
            InvalidArgument: Unknown network (engine is not touched)
            EngineError: Engine failure, surfaced without retry
        """
        network = parse_network(request.network)

        if network == SettlementNetwork.ARK:
            receivers = [Receiver(address=request.recipient, amount=request.amount)]
            txid = await self.guard.mutating(
                "send_offchain", self.engine.send_offchain, receivers, False
            )
        else:
            txid = await self.guard.mutating(
                "collaborative_exit",
                self.engine.collaborative_exit,
                request.recipient,
                request.amount,
                False,
            )

        logger.info(f"Sent {request.amount} sats via {network.value}: {txid}")
        return txid

    async def deposit(self) -> str:
        """Settle pending off-chain funds, returns the settlement txid."""
        txid = await self.guard.mutating("settle", self.engine.settle)
        logger.info(f"Settled pending funds: {txid}")
        return txid

    async def withdraw(self, request: WithdrawRequest) -> str:
        """
        Settle, then exit on-chain to the recipient.

        The exit is never attempted if settling fails. Both steps run under one
        exclusive hold so no other state change lands in between.
        """
        # Always an on-chain exit; a given network only has to be a known one
        if request.network is not None:
            parse_network(request.network)

        async with self.guard.exclusive() as engine:
            await self.guard.call("settle", engine.settle)
            txid = await self.guard.call(
                "collaborative_exit",
                engine.collaborative_exit,
                request.recipient,
                request.amount,
                False,
            )

        logger.info(f"Withdrew {request.amount} sats on-chain: {txid}")
        return txid

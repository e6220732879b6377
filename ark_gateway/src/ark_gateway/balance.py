"""
Balance and UTXO aggregation over the engine's off-chain and on-chain state.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from ark_gateway.engine.base import Vtxo, WalletEngine
from ark_gateway.guard import EngineGuard


class UtxoEntry(BaseModel):
    """Off-chain output tagged as either spendable or locked, never both."""

    amount: int = Field(..., ge=0)
    locked: bool
    spendable: bool

    @model_validator(mode="after")
    def check_exclusive(self) -> UtxoEntry:
        if self.locked == self.spendable:
            raise ValueError("a UTXO is either spendable or locked")
        return self

    @classmethod
    def from_spendable(cls, vtxo: Vtxo) -> UtxoEntry:
        return cls(amount=vtxo.amount, locked=False, spendable=True)

    @classmethod
    def from_spent(cls, vtxo: Vtxo) -> UtxoEntry:
        return cls(amount=vtxo.amount, locked=True, spendable=False)


class BalanceSnapshot(BaseModel):
    offchain_balance: int = Field(..., ge=0)
    onchain_balance: int = Field(..., ge=0)


def merge_vtxos(spendable: list[Vtxo], spent: list[Vtxo]) -> list[UtxoEntry]:
    """Spendable entries first, then locked ones, each in engine order."""
    return [UtxoEntry.from_spendable(v) for v in spendable] + [
        UtxoEntry.from_spent(v) for v in spent
    ]


class BalanceAggregator:
    def __init__(self, guard: EngineGuard):
        self.guard = guard

    async def list_utxos(self) -> list[UtxoEntry]:
        spendable, spent = await self.guard.reading("list_vtxos", self.guard.engine.list_vtxos)
        return merge_vtxos(spendable, spent)

    async def get_balance(self) -> BalanceSnapshot:
        # Listing and on-chain balance are read under one shared hold
        return await self.guard.reading("balance", self._snapshot, self.guard.engine)

    @staticmethod
    async def _snapshot(engine: WalletEngine) -> BalanceSnapshot:
        spendable, _ = await engine.list_vtxos()
        balance = await engine.balance(compute_expiry_details=False)
        return BalanceSnapshot(
            offchain_balance=sum(v.amount for v in spendable),
            onchain_balance=balance.onchain_spendable,
        )

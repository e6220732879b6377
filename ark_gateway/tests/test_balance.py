"""
Tests for balance and UTXO aggregation.
"""

import pytest
from pydantic import ValidationError

from ark_gateway.balance import BalanceAggregator, UtxoEntry, merge_vtxos
from ark_gateway.engine.base import Vtxo
from ark_gateway.errors import EngineError


def test_merge_puts_spendable_before_locked(sample_vtxos):
    spendable, spent = sample_vtxos

    entries = merge_vtxos(spendable, spent)

    assert [e.amount for e in entries] == [10_000, 25_000, 5_000]
    assert [e.spendable for e in entries] == [True, True, False]
    for entry in entries:
        assert entry.locked is not entry.spendable


def test_merge_empty():
    assert merge_vtxos([], []) == []


def test_utxo_entry_rejects_ambiguous_tagging():
    with pytest.raises(ValidationError):
        UtxoEntry(amount=1, locked=True, spendable=True)
    with pytest.raises(ValidationError):
        UtxoEntry(amount=1, locked=False, spendable=False)


def test_utxo_entry_wire_shape():
    entry = UtxoEntry.from_spent(Vtxo(txid="d" * 64, vout=2, amount=42))
    assert entry.model_dump() == {"amount": 42, "locked": True, "spendable": False}


@pytest.mark.asyncio
async def test_list_utxos(fake_engine, guard, sample_vtxos):
    fake_engine.spendable, fake_engine.spent = sample_vtxos
    aggregator = BalanceAggregator(guard)

    utxos = await aggregator.list_utxos()

    assert len(utxos) == 3
    assert utxos[-1].locked is True


@pytest.mark.asyncio
async def test_balance_sums_spendable_only(fake_engine, guard, sample_vtxos):
    fake_engine.spendable, fake_engine.spent = sample_vtxos
    fake_engine.onchain_spendable = 70_000
    aggregator = BalanceAggregator(guard)

    snapshot = await aggregator.get_balance()

    assert snapshot.offchain_balance == 35_000
    assert snapshot.onchain_balance == 70_000
    assert ("balance", False) in fake_engine.calls


@pytest.mark.asyncio
async def test_balance_aborts_on_onchain_failure(fake_engine, guard, sample_vtxos):
    fake_engine.spendable, fake_engine.spent = sample_vtxos
    fake_engine.failures["balance"] = RuntimeError("explorer down")
    aggregator = BalanceAggregator(guard)

    with pytest.raises(EngineError, match="explorer down"):
        await aggregator.get_balance()


@pytest.mark.asyncio
async def test_list_utxos_aborts_on_engine_failure(fake_engine, guard):
    fake_engine.failures["list_vtxos"] = EngineError("wallet locked")
    aggregator = BalanceAggregator(guard)

    with pytest.raises(EngineError, match="wallet locked"):
        await aggregator.list_utxos()

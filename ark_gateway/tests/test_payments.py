"""
Tests for payment routing.
"""

import pytest
from pydantic import ValidationError

from ark_gateway.engine.base import Receiver
from ark_gateway.errors import EngineError, InvalidArgument
from ark_gateway.payments import (
    MAX_AMOUNT,
    PaymentRouter,
    SendRequest,
    SettlementNetwork,
    WithdrawRequest,
    parse_network,
)


@pytest.mark.parametrize("value", ["ark", "ARK", "Ark", " ark "])
def test_parse_network_ark(value):
    assert parse_network(value) == SettlementNetwork.ARK


@pytest.mark.parametrize("value", ["onchain", "ONCHAIN", "OnChain"])
def test_parse_network_onchain(value):
    assert parse_network(value) == SettlementNetwork.ONCHAIN


@pytest.mark.parametrize("value", ["", "lightning", "on-chain", "arkk"])
def test_parse_network_invalid(value):
    with pytest.raises(InvalidArgument):
        parse_network(value)


def test_send_request_accepts_to_alias():
    request = SendRequest.model_validate({"network": "ark", "to": "addr1", "amount": 1000})
    assert request.recipient == "addr1"


def test_send_request_rejects_string_amount():
    with pytest.raises(ValidationError):
        SendRequest.model_validate({"network": "ark", "recipient": "addr1", "amount": "1000"})


def test_send_request_rejects_negative_amount():
    with pytest.raises(ValidationError):
        SendRequest.model_validate({"network": "ark", "recipient": "addr1", "amount": -1})


@pytest.mark.parametrize("model", [SendRequest, WithdrawRequest])
def test_amount_fits_in_uint64(model):
    body = {"network": "ark", "recipient": "addr1", "amount": MAX_AMOUNT}
    assert model.model_validate(body).amount == 2**64 - 1

    with pytest.raises(ValidationError):
        model.model_validate({**body, "amount": MAX_AMOUNT + 1})


@pytest.mark.asyncio
async def test_send_ark_uses_offchain_path(fake_engine, guard):
    router = PaymentRouter(guard)

    txid = await router.send(SendRequest(network="ARK", recipient="addr1", amount=1000))

    assert txid
    assert fake_engine.calls == [("send_offchain", [Receiver("addr1", 1000)], False)]


@pytest.mark.asyncio
async def test_send_onchain_uses_collaborative_exit(fake_engine, guard):
    router = PaymentRouter(guard)

    txid = await router.send(SendRequest(network="onchain", recipient="bcrt1dest", amount=2000))

    assert txid
    assert fake_engine.calls == [("collaborative_exit", "bcrt1dest", 2000, False)]


@pytest.mark.asyncio
async def test_send_invalid_network_never_touches_engine(fake_engine, guard):
    router = PaymentRouter(guard)

    with pytest.raises(InvalidArgument):
        await router.send(SendRequest(network="lightning", recipient="addr1", amount=1))

    assert fake_engine.calls == []


@pytest.mark.asyncio
async def test_send_engine_failure_not_retried(fake_engine, guard):
    fake_engine.failures["send_offchain"] = EngineError("insufficient funds")
    router = PaymentRouter(guard)

    with pytest.raises(EngineError, match="insufficient funds"):
        await router.send(SendRequest(network="ark", recipient="addr1", amount=10**9))

    assert fake_engine.call_count("send_offchain") == 1


@pytest.mark.asyncio
async def test_deposit_settles(fake_engine, guard):
    router = PaymentRouter(guard)

    txid = await router.deposit()

    assert len(txid) == 64
    assert fake_engine.calls == [("settle",)]


@pytest.mark.asyncio
async def test_withdraw_settles_then_exits(fake_engine, guard):
    router = PaymentRouter(guard)

    await router.withdraw(WithdrawRequest(network="onchain", recipient="addr2", amount=2000))

    assert [call[0] for call in fake_engine.calls] == ["settle", "collaborative_exit"]
    assert fake_engine.calls[1] == ("collaborative_exit", "addr2", 2000, False)


@pytest.mark.asyncio
async def test_withdraw_skips_exit_when_settle_fails(fake_engine, guard):
    fake_engine.failures["settle"] = EngineError("no funds to settle")
    router = PaymentRouter(guard)

    with pytest.raises(EngineError, match="no funds to settle"):
        await router.withdraw(WithdrawRequest(network="onchain", recipient="addr2", amount=2000))

    assert fake_engine.call_count("collaborative_exit") == 0
    assert not guard.busy


@pytest.mark.asyncio
async def test_withdraw_without_network(fake_engine, guard):
    router = PaymentRouter(guard)

    await router.withdraw(WithdrawRequest.model_validate({"to": "addr2", "amount": 5}))

    assert fake_engine.call_count("collaborative_exit") == 1


@pytest.mark.asyncio
async def test_withdraw_with_ark_network_still_exits_onchain(fake_engine, guard):
    router = PaymentRouter(guard)

    await router.withdraw(WithdrawRequest(network="ARK", recipient="addr2", amount=5))

    assert fake_engine.call_count("settle") == 1
    assert ("collaborative_exit", "addr2", 5, False) in fake_engine.calls


@pytest.mark.asyncio
async def test_withdraw_rejects_unknown_network(fake_engine, guard):
    router = PaymentRouter(guard)

    with pytest.raises(InvalidArgument):
        await router.withdraw(WithdrawRequest(network="lightning", recipient="addr2", amount=5))

    assert fake_engine.calls == []

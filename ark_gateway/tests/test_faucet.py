"""
Tests for the test-network faucet.
"""

import pytest

from ark_gateway.errors import FaucetError, InvalidArgument
from ark_gateway.faucet import Faucet


@pytest.mark.asyncio
async def test_faucet_returns_tool_output():
    faucet = Faucet("echo funded")

    message = await faucet.fund("bcrt1qtest")

    assert message.strip() == "funded bcrt1qtest"


@pytest.mark.asyncio
async def test_faucet_nonzero_exit():
    faucet = Faucet("false")

    with pytest.raises(FaucetError, match="exit status 1"):
        await faucet.fund("bcrt1qtest")


@pytest.mark.asyncio
async def test_faucet_missing_binary():
    faucet = Faucet("definitely-not-a-real-faucet-binary")

    with pytest.raises(FaucetError, match="not found"):
        await faucet.fund("bcrt1qtest")


@pytest.mark.asyncio
async def test_faucet_rejects_option_like_address():
    faucet = Faucet("echo")

    with pytest.raises(InvalidArgument):
        await faucet.fund("--help")


def test_empty_command_rejected():
    with pytest.raises(ValueError):
        Faucet("   ")

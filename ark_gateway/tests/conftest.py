"""
Test fixtures and an in-memory wallet engine.
"""

from __future__ import annotations

import asyncio

import pytest

from ark_gateway.config import Settings
from ark_gateway.engine.base import (
    AddressPair,
    Balance,
    ConfigData,
    InitArgs,
    Receiver,
    Vtxo,
    WalletEngine,
)
from ark_gateway.errors import EngineError
from ark_gateway.guard import EngineGuard


class FakeWalletEngine(WalletEngine):
    """
    Records every call. Set failures[op] to make an operation raise and
    delays[op] to make it sleep first.
    """

    def __init__(self) -> None:
        self.exists = True
        self.password = "secret"
        self.init_args: InitArgs | None = None
        self.addresses = AddressPair(
            offchain_address="tark1offchain", boarding_address="bcrt1board"
        )
        self.spendable: list[Vtxo] = []
        self.spent: list[Vtxo] = []
        self.onchain_spendable = 0
        self.config = ConfigData(
            server_url="localhost:7070", network="regtest", explorer_url="http://explorer.test"
        )
        self.failures: dict[str, Exception] = {}
        self.delays: dict[str, float] = {}
        self.calls: list[tuple] = []
        self.closed = False
        self._txid_counter = 0

    async def _enter(self, op: str, *args) -> None:
        self.calls.append((op, *args))
        if op in self.delays:
            await asyncio.sleep(self.delays[op])
        if op in self.failures:
            raise self.failures[op]

    def _next_txid(self) -> str:
        self._txid_counter += 1
        return f"{self._txid_counter:064x}"

    def call_count(self, op: str) -> int:
        return sum(1 for call in self.calls if call[0] == op)

    async def wallet_exists(self) -> bool:
        await self._enter("wallet_exists")
        return self.exists

    async def unlock(self, password: str) -> None:
        await self._enter("unlock", password)
        if password != self.password:
            raise EngineError("invalid password")

    async def init(self, args: InitArgs) -> None:
        await self._enter("init", args)
        self.init_args = args
        self.exists = True

    async def receive(self) -> AddressPair:
        await self._enter("receive")
        return self.addresses

    async def list_vtxos(self) -> tuple[list[Vtxo], list[Vtxo]]:
        await self._enter("list_vtxos")
        return list(self.spendable), list(self.spent)

    async def settle(self) -> str:
        await self._enter("settle")
        return self._next_txid()

    async def send_offchain(
        self, receivers: list[Receiver], with_expiry_coinselect: bool = False
    ) -> str:
        await self._enter("send_offchain", receivers, with_expiry_coinselect)
        return self._next_txid()

    async def collaborative_exit(
        self, address: str, amount: int, with_expiry_coinselect: bool = False
    ) -> str:
        await self._enter("collaborative_exit", address, amount, with_expiry_coinselect)
        return self._next_txid()

    async def balance(self, compute_expiry_details: bool = False) -> Balance:
        await self._enter("balance", compute_expiry_details)
        return Balance(
            offchain_total=sum(v.amount for v in self.spendable),
            onchain_spendable=self.onchain_spendable,
        )

    async def get_config_data(self) -> ConfigData:
        await self._enter("get_config_data")
        return self.config

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_engine() -> FakeWalletEngine:
    return FakeWalletEngine()


@pytest.fixture
def guard(fake_engine: FakeWalletEngine) -> EngineGuard:
    return EngineGuard(fake_engine, timeout=5.0)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        ark_server_url="localhost:7070",
        wallet_password="secret",
        ark_daemon_url="http://daemon.test",
        enable_faucet=False,
    )


@pytest.fixture
def sample_vtxos() -> tuple[list[Vtxo], list[Vtxo]]:
    spendable = [
        Vtxo(txid="a" * 64, vout=0, amount=10_000),
        Vtxo(txid="b" * 64, vout=1, amount=25_000),
    ]
    spent = [Vtxo(txid="c" * 64, vout=0, amount=5_000)]
    return spendable, spent

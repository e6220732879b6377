"""
Wallet engine interface.

The engine owns keys, wallet storage and Ark protocol transaction
construction. The gateway only depends on the contract below.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class AddressPair:
    offchain_address: str
    boarding_address: str


@dataclass
class Vtxo:
    """Virtual UTXO tracked by the Ark layer."""

    txid: str
    vout: int
    amount: int


@dataclass(frozen=True)
class Receiver:
    address: str
    amount: int


@dataclass
class InitArgs:
    wallet_type: str
    client_type: str
    server_url: str
    password: str
    with_transaction_feed: bool = False


@dataclass
class ConfigData:
    server_url: str
    network: str
    explorer_url: str


@dataclass
class Balance:
    offchain_total: int
    onchain_spendable: int
    onchain_locked: int = 0


class WalletEngine(ABC):
    """
    Abstract wallet engine.
    A single instance is shared by the whole gateway; callers serialize
    state-changing operations through EngineGuard.
    """

    @abstractmethod
    async def wallet_exists(self) -> bool:
        """Whether a persisted wallet was found in the engine's store"""

    @abstractmethod
    async def unlock(self, password: str) -> None:
        """Unlock an existing wallet"""

    @abstractmethod
    async def init(self, args: InitArgs) -> None:
        """Create and initialize a new wallet"""

    @abstractmethod
    async def receive(self) -> AddressPair:
        """Get an off-chain address and its paired boarding address"""

    @abstractmethod
    async def list_vtxos(self) -> tuple[list[Vtxo], list[Vtxo]]:
        """List off-chain outputs as (spendable, spent)"""

    @abstractmethod
    async def settle(self) -> str:
        """Move pending off-chain funds into a confirmed state, returns txid"""

    @abstractmethod
    async def send_offchain(
        self, receivers: list[Receiver], with_expiry_coinselect: bool = False
    ) -> str:
        """Send off-chain and wait for confirmation, returns txid"""

    @abstractmethod
    async def collaborative_exit(
        self, address: str, amount: int, with_expiry_coinselect: bool = False
    ) -> str:
        """Cooperatively exit to an on-chain address, returns txid"""

    @abstractmethod
    async def balance(self, compute_expiry_details: bool = False) -> Balance:
        """Get wallet balance"""

    @abstractmethod
    async def get_config_data(self) -> ConfigData:
        """Get network configuration, including the explorer endpoint"""

    async def close(self) -> None:
        """Release engine resources"""
        pass

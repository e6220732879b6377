"""
Wallet engine implementations.

Available engines:
- RestWalletEngine: Ark client daemon driven over its REST API
- EsploraExplorer: fee-rate oracle used for fee estimation
"""

from ark_gateway.engine.base import (
    AddressPair,
    Balance,
    ConfigData,
    InitArgs,
    Receiver,
    Vtxo,
    WalletEngine,
)
from ark_gateway.engine.explorer import EsploraExplorer
from ark_gateway.engine.rest import RestWalletEngine

__all__ = [
    "AddressPair",
    "Balance",
    "ConfigData",
    "EsploraExplorer",
    "InitArgs",
    "Receiver",
    "RestWalletEngine",
    "Vtxo",
    "WalletEngine",
]

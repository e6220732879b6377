"""
Ark client daemon wallet engine.

The daemon runs as a separate process holding the wallet store, keys and the
connection to the Ark server. This engine drives it over its REST API.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

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

# Per-call bounds are applied by EngineGuard; this only guards against a dead socket
DEFAULT_DAEMON_TIMEOUT = 300.0


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        for key in ("error", "message"):
            if data.get(key):
                return str(data[key])
    return response.text


def _parse_vtxos(entries: list[dict[str, Any]] | None) -> list[Vtxo]:
    return [
        Vtxo(txid=str(v["txid"]), vout=int(v["vout"]), amount=int(v["amount"]))
        for v in entries or []
    ]


class RestWalletEngine(WalletEngine):
    """
    Wallet engine backed by an Ark client daemon.

    Endpoints used (all JSON):
    - GET  v1/wallet/status         -> {"initialized": bool}
    - POST v1/wallet/unlock         <- {"password"}
    - POST v1/wallet/init           <- InitArgs fields
    - GET  v1/wallet/address        -> {"offchain_address", "boarding_address"}
    - GET  v1/vtxos                 -> {"spendable": [...], "spent": [...]}
    - POST v1/settle                -> {"txid"}
    - POST v1/send/offchain         -> {"txid"}
    - POST v1/collaborative-exit    -> {"txid"}
    - GET  v1/balance               -> {"offchain": {...}, "onchain": {...}}
    - GET  v1/config                -> {"server_url", "network", "explorer_url"}
    """

    def __init__(
        self,
        daemon_url: str = "http://127.0.0.1:7000",
        timeout: float = DEFAULT_DAEMON_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.daemon_url = daemon_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def _api_call(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make an API call to the daemon.

        Raises:
            EngineError: On transport errors, non-2xx answers or non-JSON bodies
        """
        url = f"{self.daemon_url}/{endpoint}"

        try:
            if method == "GET":
                response = await self.client.get(url, params=params)
            elif method == "POST":
                response = await self.client.post(url, json=data or {})
            else:
                raise ValueError(f"Unsupported HTTP method: {method}")
        except httpx.HTTPError as e:
            logger.error(f"Daemon API call failed: {endpoint} - {e}")
            raise EngineError(str(e)) from e

        if response.is_error:
            message = _error_message(response)
            logger.warning(f"Daemon returned {response.status_code} for {endpoint}: {message}")
            raise EngineError(message)

        try:
            return response.json()
        except ValueError as e:
            raise EngineError(f"Invalid JSON from daemon on {endpoint}") from e

    async def _txid_call(self, endpoint: str, data: dict[str, Any] | None = None) -> str:
        result = await self._api_call("POST", endpoint, data=data)
        try:
            return str(result["txid"])
        except (KeyError, TypeError) as e:
            raise EngineError(f"Daemon response for {endpoint} has no txid") from e

    async def wallet_exists(self) -> bool:
        status = await self._api_call("GET", "v1/wallet/status")
        return bool(status.get("initialized", False))

    async def unlock(self, password: str) -> None:
        await self._api_call("POST", "v1/wallet/unlock", data={"password": password})

    async def init(self, args: InitArgs) -> None:
        await self._api_call(
            "POST",
            "v1/wallet/init",
            data={
                "wallet_type": args.wallet_type,
                "client_type": args.client_type,
                "server_url": args.server_url,
                "password": args.password,
                "with_transaction_feed": args.with_transaction_feed,
            },
        )

    async def receive(self) -> AddressPair:
        data = await self._api_call("GET", "v1/wallet/address")
        try:
            return AddressPair(
                offchain_address=data["offchain_address"],
                boarding_address=data["boarding_address"],
            )
        except (KeyError, TypeError) as e:
            raise EngineError(f"Malformed address response: {e}") from e

    async def list_vtxos(self) -> tuple[list[Vtxo], list[Vtxo]]:
        data = await self._api_call("GET", "v1/vtxos")
        try:
            return _parse_vtxos(data.get("spendable")), _parse_vtxos(data.get("spent"))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise EngineError(f"Malformed vtxo listing: {e}") from e

    async def settle(self) -> str:
        return await self._txid_call("v1/settle")

    async def send_offchain(
        self, receivers: list[Receiver], with_expiry_coinselect: bool = False
    ) -> str:
        return await self._txid_call(
            "v1/send/offchain",
            {
                "receivers": [{"address": r.address, "amount": r.amount} for r in receivers],
                "with_expiry_coinselect": with_expiry_coinselect,
                "wait": True,
            },
        )

    async def collaborative_exit(
        self, address: str, amount: int, with_expiry_coinselect: bool = False
    ) -> str:
        return await self._txid_call(
            "v1/collaborative-exit",
            {
                "address": address,
                "amount": amount,
                "with_expiry_coinselect": with_expiry_coinselect,
            },
        )

    async def balance(self, compute_expiry_details: bool = False) -> Balance:
        data = await self._api_call(
            "GET",
            "v1/balance",
            params={"compute_expiry_details": str(compute_expiry_details).lower()},
        )
        try:
            offchain = data.get("offchain") or {}
            onchain = data.get("onchain") or {}
            return Balance(
                offchain_total=int(offchain.get("total", 0)),
                onchain_spendable=int(onchain.get("spendable_amount", 0)),
                onchain_locked=sum(
                    int(entry.get("amount", 0)) for entry in onchain.get("locked_amount") or []
                ),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise EngineError(f"Malformed balance response: {e}") from e

    async def get_config_data(self) -> ConfigData:
        data = await self._api_call("GET", "v1/config")
        try:
            return ConfigData(
                server_url=data["server_url"],
                network=data["network"],
                explorer_url=data["explorer_url"],
            )
        except (KeyError, TypeError) as e:
            raise EngineError(f"Malformed config response: {e}") from e

    async def close(self) -> None:
        await self.client.aclose()

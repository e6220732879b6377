"""
Esplora explorer client used as the fee-rate oracle.
"""

from __future__ import annotations

import httpx
from loguru import logger

from ark_gateway.errors import EngineError

DEFAULT_EXPLORER_TIMEOUT = 30.0

# Esplora keys fee estimates by confirmation target in blocks
NEXT_BLOCK_TARGET = "1"


class EsploraExplorer:
    def __init__(
        self,
        explorer_url: str,
        network: str,
        timeout: float = DEFAULT_EXPLORER_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.explorer_url = explorer_url.rstrip("/")
        self.network = network
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def get_fee_rate(self) -> float:
        """
        Get the next-block fee rate in sat/vbyte.

        Raises:
            EngineError: If the explorer is unreachable or has no estimate
        """
        url = f"{self.explorer_url}/fee-estimates"
        try:
            response = await self.client.get(url)
            response.raise_for_status()
            estimates = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Fee-rate query failed ({self.network}): {e}")
            raise EngineError(f"fee-rate oracle unavailable: {e}") from e
        except ValueError as e:
            raise EngineError("fee-rate oracle returned invalid JSON") from e

        if not isinstance(estimates, dict) or NEXT_BLOCK_TARGET not in estimates:
            raise EngineError("fee-rate oracle returned no next-block estimate")

        try:
            rate = float(estimates[NEXT_BLOCK_TARGET])
        except (TypeError, ValueError) as e:
            raise EngineError(f"invalid fee rate: {estimates[NEXT_BLOCK_TARGET]!r}") from e
        if rate < 0:
            raise EngineError(f"negative fee rate: {rate}")

        logger.debug(f"Fee rate for {self.network}: {rate} sat/vB")
        return rate

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

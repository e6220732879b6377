"""
Fee estimation from live network fee rates.

The estimate assumes a fixed-size transaction and splits the total between a
network part and a service part.
"""

from __future__ import annotations

import math
from decimal import ROUND_FLOOR, Decimal

import httpx
from loguru import logger
from pydantic import BaseModel, Field, model_validator

from ark_gateway.engine.explorer import EsploraExplorer
from ark_gateway.guard import EngineGuard

DEFAULT_TX_VBYTES = 100
DEFAULT_NETWORK_FEE_SHARE = Decimal("0.8")


class FeeBreakdown(BaseModel):
    network_fee: int = Field(..., ge=0)
    service_fee: int = Field(..., ge=0)


class FeeEstimate(BaseModel):
    total_fee: int = Field(..., ge=0)
    breakdown: FeeBreakdown

    @model_validator(mode="after")
    def check_split(self) -> FeeEstimate:
        if self.breakdown.network_fee + self.breakdown.service_fee != self.total_fee:
            raise ValueError("fee breakdown does not add up to total fee")
        return self


def compute_fee_estimate(
    fee_rate: float,
    vbytes: int = DEFAULT_TX_VBYTES,
    network_fee_share: Decimal = DEFAULT_NETWORK_FEE_SHARE,
) -> FeeEstimate:
    """
    Turn a fee rate into a total fee and its network/service split.

    Args:
        fee_rate: Fee rate in sat/vbyte (must be >= 0)
        vbytes: Assumed transaction size
        network_fee_share: Fraction of the total attributed to the network

    Returns:
        FeeEstimate with total = floor(rate * vbytes) and
        network = floor(total * share), service = total - network
    """
    if fee_rate < 0 or math.isnan(fee_rate) or math.isinf(fee_rate):
        raise ValueError(f"invalid fee rate: {fee_rate}")

    # str() keeps the oracle's decimal value, e.g. 1.1 * 100 == 110 exactly
    total = int((Decimal(str(fee_rate)) * vbytes).to_integral_value(rounding=ROUND_FLOOR))
    network = int((Decimal(total) * network_fee_share).to_integral_value(rounding=ROUND_FLOOR))
    return FeeEstimate(
        total_fee=total,
        breakdown=FeeBreakdown(network_fee=network, service_fee=total - network),
    )


class FeeEstimator:
    def __init__(
        self,
        guard: EngineGuard,
        vbytes: int = DEFAULT_TX_VBYTES,
        network_fee_share: Decimal = DEFAULT_NETWORK_FEE_SHARE,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.guard = guard
        self.vbytes = vbytes
        self.network_fee_share = network_fee_share
        self.http_client = http_client or httpx.AsyncClient(timeout=guard.timeout)

    def _explorer(self, explorer_url: str, network: str) -> EsploraExplorer:
        return EsploraExplorer(explorer_url, network, client=self.http_client)

    async def estimate(self) -> FeeEstimate:
        """
        Fetch network config and the current fee rate, then compute the estimate.
        Never falls back to a cached or default rate.
        """
        config = await self.guard.reading("get_config_data", self.guard.engine.get_config_data)
        explorer = self._explorer(config.explorer_url, config.network)
        fee_rate = await self.guard.reading("get_fee_rate", explorer.get_fee_rate)

        estimate = compute_fee_estimate(fee_rate, self.vbytes, self.network_fee_share)
        logger.debug(
            f"Fee estimate at {fee_rate} sat/vB x {self.vbytes} vB: {estimate.total_fee} sats"
        )
        return estimate

    async def close(self) -> None:
        await self.http_client.aclose()

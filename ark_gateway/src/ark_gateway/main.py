"""
Main entry point for the Ark wallet gateway.
"""

from __future__ import annotations

import asyncio
import signal
import sys
from dataclasses import dataclass

import httpx
from loguru import logger

from ark_gateway.balance import BalanceAggregator
from ark_gateway.config import Settings, get_settings
from ark_gateway.engine import RestWalletEngine, WalletEngine
from ark_gateway.errors import FatalStartupError
from ark_gateway.faucet import Faucet
from ark_gateway.fees import FeeEstimator
from ark_gateway.guard import EngineGuard
from ark_gateway.payments import PaymentRouter
from ark_gateway.server import GatewayServer
from ark_gateway.session import WalletSession


def setup_logging(level: str) -> None:
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )


@dataclass
class Gateway:
    """Components wired around one shared engine."""

    engine: WalletEngine
    guard: EngineGuard
    session: WalletSession
    router: PaymentRouter
    aggregator: BalanceAggregator
    estimator: FeeEstimator

    async def close(self) -> None:
        await self.estimator.close()
        await self.engine.close()


def build_gateway(
    settings: Settings,
    engine: WalletEngine | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> Gateway:
    engine = engine or RestWalletEngine(settings.ark_daemon_url)
    guard = EngineGuard(engine, timeout=settings.engine_timeout)
    session = WalletSession(
        guard,
        password=settings.wallet_password.get_secret_value(),
        server_url=settings.ark_server_url,
        wallet_type=settings.wallet_type,
        client_type=settings.client_type,
    )
    return Gateway(
        engine=engine,
        guard=guard,
        session=session,
        router=PaymentRouter(guard),
        aggregator=BalanceAggregator(guard),
        estimator=FeeEstimator(
            guard,
            vbytes=settings.fee_vbytes,
            network_fee_share=settings.network_fee_share,
            http_client=http_client,
        ),
    )


async def run_gateway(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    logger.info("Starting Ark wallet gateway")
    logger.info(f"Network: {settings.network}")
    logger.info(f"Ark server: {settings.ark_server_url}")
    logger.info(f"Wallet daemon: {settings.ark_daemon_url}")
    logger.info(f"HTTP server: {settings.http_host}:{settings.http_port}")
    if settings.enable_faucet:
        logger.warning(f"Faucet endpoint enabled ({settings.faucet_command}); test networks only")

    gateway = build_gateway(settings)

    try:
        await gateway.session.start()
    except FatalStartupError as e:
        logger.error(f"Failed to set up wallet: {e}")
        await gateway.close()
        sys.exit(1)

    faucet = Faucet(settings.faucet_command) if settings.enable_faucet else None
    server = GatewayServer(
        settings,
        session=gateway.session,
        router=gateway.router,
        aggregator=gateway.aggregator,
        estimator=gateway.estimator,
        faucet=faucet,
    )

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def shutdown_handler() -> None:
        logger.info("Received shutdown signal")
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown_handler)

    try:
        await server.start()
        await stop_event.wait()
    except asyncio.CancelledError:
        logger.info("Gateway cancelled")
    except Exception as e:
        logger.error(f"Gateway error: {e}")
        raise
    finally:
        await server.stop()
        await gateway.close()


def main() -> None:
    try:
        asyncio.run(run_gateway())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

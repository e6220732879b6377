"""
Ark gateway CLI - run the HTTP gateway or query the wallet daemon directly.
"""

from __future__ import annotations

import asyncio
import json

import typer
from loguru import logger

from ark_gateway.config import Settings, get_settings
from ark_gateway.errors import GatewayError
from ark_gateway.main import build_gateway, run_gateway, setup_logging

app = typer.Typer(
    name="ark-gateway",
    help="HTTP gateway for an Ark + on-chain Bitcoin wallet",
    add_completion=False,
)


def _load_settings(**overrides: object) -> Settings:
    settings = get_settings()
    updates = {k: v for k, v in overrides.items() if v is not None}
    return settings.model_copy(update=updates) if updates else settings


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="HTTP bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="HTTP port"),
    daemon_url: str | None = typer.Option(None, "--daemon-url", help="Ark client daemon URL"),
    server_url: str | None = typer.Option(None, "--server-url", help="Ark server URL"),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Log level"),
    faucet: bool | None = typer.Option(
        None, "--faucet/--no-faucet", help="Expose the test-network faucet endpoint"
    ),
) -> None:
    """Unlock or create the wallet and serve the HTTP API."""
    settings = _load_settings(
        http_host=host,
        http_port=port,
        ark_daemon_url=daemon_url,
        ark_server_url=server_url,
        log_level=log_level,
        enable_faucet=faucet,
    )
    try:
        asyncio.run(run_gateway(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")


async def _estimate_fee(settings: Settings) -> dict:
    gateway = build_gateway(settings)
    try:
        estimate = await gateway.estimator.estimate()
        return estimate.model_dump()
    finally:
        await gateway.close()


@app.command("estimate-fee")
def estimate_fee(
    daemon_url: str | None = typer.Option(None, "--daemon-url", help="Ark client daemon URL"),
    log_level: str = typer.Option("WARNING", "--log-level", "-l", help="Log level"),
) -> None:
    """Print the current fee estimate as JSON."""
    setup_logging(log_level.upper())
    settings = _load_settings(ark_daemon_url=daemon_url)

    try:
        result = asyncio.run(_estimate_fee(settings))
    except GatewayError as e:
        logger.error(f"Fee estimation failed: {e}")
        raise typer.Exit(1) from e

    typer.echo(json.dumps(result, indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()

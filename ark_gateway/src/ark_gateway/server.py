"""
HTTP/JSON server exposing wallet operations.
"""

from __future__ import annotations

import contextlib
import json
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from aiohttp import web
from loguru import logger
from pydantic import BaseModel, ValidationError

from ark_gateway.balance import BalanceAggregator
from ark_gateway.config import Settings
from ark_gateway.errors import GatewayError, MalformedRequest
from ark_gateway.faucet import Faucet, FaucetRequest
from ark_gateway.fees import FeeEstimator
from ark_gateway.payments import PaymentRouter, SendRequest, WithdrawRequest
from ark_gateway.session import WalletSession

M = TypeVar("M", bound=BaseModel)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def make_cors_middleware(origins: list[str]):
    """Allow the configured origins (or any, with "*") for GET/POST/OPTIONS."""
    allow_any = "*" in origins

    @web.middleware
    async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        if request.method == "OPTIONS":
            response: web.StreamResponse = web.Response(status=204)
        else:
            response = await handler(request)

        origin = request.headers.get("Origin")
        if allow_any:
            response.headers["Access-Control-Allow-Origin"] = "*"
        elif origin and origin in origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    return cors_middleware


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    try:
        return await handler(request)
    except GatewayError as e:
        if e.status >= 500:
            logger.error(f"{request.method} {request.path} failed: {e}")
        else:
            logger.debug(f"{request.method} {request.path} rejected: {e}")
        return web.json_response({"error": str(e)}, status=e.status)
    except web.HTTPException as e:
        return web.json_response({"error": e.reason}, status=e.status)
    except Exception as e:
        logger.exception(f"Unhandled error on {request.method} {request.path}: {e}")
        return web.json_response({"error": str(e)}, status=500)


async def parse_body(request: web.Request, model: type[M]) -> M:
    """Decode a JSON body into model, raising MalformedRequest on any failure."""
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedRequest(f"invalid JSON body: {e}") from e
    if not isinstance(data, dict):
        raise MalformedRequest("JSON body must be an object")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}" for err in e.errors()
        )
        raise MalformedRequest(f"invalid request: {details}") from e


class GatewayServer:
    def __init__(
        self,
        settings: Settings,
        session: WalletSession,
        router: PaymentRouter,
        aggregator: BalanceAggregator,
        estimator: FeeEstimator,
        faucet: Faucet | None = None,
    ) -> None:
        self.settings = settings
        self.session = session
        self.router = router
        self.aggregator = aggregator
        self.estimator = estimator
        self.faucet = faucet
        self.app = web.Application(
            middlewares=[make_cors_middleware(settings.get_cors_origins()), error_middleware]
        )
        self.runner: web.AppRunner | None = None
        self.site: web.TCPSite | None = None
        self._stopping = False
        self._setup_routes()

    def _setup_routes(self) -> None:
        self.app.router.add_post("/wallet/create", self._handle_create)
        self.app.router.add_post("/payment/send", self._handle_send)
        self.app.router.add_get("/payment/estimate", self._handle_estimate)
        self.app.router.add_get("/wallet/utxos", self._handle_utxos)
        self.app.router.add_post("/wallet/deposit", self._handle_deposit)
        self.app.router.add_get("/wallet/balance", self._handle_balance)
        self.app.router.add_post("/wallet/withdraw", self._handle_withdraw)
        self.app.router.add_get("/health", self._handle_health)
        if self.faucet is not None:
            self.app.router.add_post("/wallet/faucet", self._handle_faucet)

    async def _handle_create(self, _request: web.Request) -> web.Response:
        addresses = await self.session.receive_addresses()
        return web.json_response(
            {
                "offchain_address": addresses.offchain_address,
                "boarding_address": addresses.boarding_address,
            }
        )

    async def _handle_send(self, request: web.Request) -> web.Response:
        send_request = await parse_body(request, SendRequest)
        txid = await self.router.send(send_request)
        return web.json_response({"txid": txid})

    async def _handle_estimate(self, _request: web.Request) -> web.Response:
        estimate = await self.estimator.estimate()
        return web.json_response(estimate.model_dump())

    async def _handle_utxos(self, _request: web.Request) -> web.Response:
        utxos = await self.aggregator.list_utxos()
        return web.json_response([u.model_dump() for u in utxos])

    async def _handle_deposit(self, _request: web.Request) -> web.Response:
        txid = await self.router.deposit()
        return web.json_response({"txid": txid})

    async def _handle_faucet(self, request: web.Request) -> web.Response:
        if self.faucet is None:
            raise web.HTTPNotFound()
        faucet_request = await parse_body(request, FaucetRequest)
        message = await self.faucet.fund(faucet_request.address)
        return web.json_response({"message": message})

    async def _handle_balance(self, _request: web.Request) -> web.Response:
        snapshot = await self.aggregator.get_balance()
        return web.json_response(snapshot.model_dump())

    async def _handle_withdraw(self, request: web.Request) -> web.Response:
        withdraw_request = await parse_body(request, WithdrawRequest)
        txid = await self.router.withdraw(withdraw_request)
        return web.json_response({"txid": txid})

    async def _handle_health(self, _request: web.Request) -> web.Response:
        data: dict[str, Any] = {
            "status": "healthy" if self.session.ready else "unhealthy",
            "session": self.session.state.value,
        }
        return web.json_response(data, status=200 if self.session.ready else 503)

    async def start(self) -> None:
        logger.info(f"Starting gateway on {self.settings.http_host}:{self.settings.http_port}")

        # Client disconnects cancel the handler; EngineGuard releases on cancellation
        self.runner = web.AppRunner(self.app, handler_cancellation=True)
        await self.runner.setup()

        self.site = web.TCPSite(self.runner, self.settings.http_host, self.settings.http_port)
        await self.site.start()

        logger.info(
            f"Gateway running at http://{self.settings.http_host}:{self.settings.http_port}"
        )

    async def stop(self) -> None:
        if self._stopping:
            return
        self._stopping = True

        logger.info("Stopping gateway...")

        if self.site:
            with contextlib.suppress(RuntimeError):
                await self.site.stop()
            self.site = None

        if self.runner:
            with contextlib.suppress(RuntimeError):
                await self.runner.cleanup()
            self.runner = None

        logger.info("Gateway stopped")

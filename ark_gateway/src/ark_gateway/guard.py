"""
Serialized access to the shared wallet engine.

State-changing engine operations (settle, send, exit, init, unlock) run one at
a time. Read-only operations share access with each other but queue behind
any in-flight or waiting state-changing operation.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TypeVar

from loguru import logger

from ark_gateway.engine.base import WalletEngine
from ark_gateway.errors import EngineError, EngineTimeout, GatewayError

T = TypeVar("T")

DEFAULT_ENGINE_TIMEOUT = 60.0


class EngineGuard:
    """
    Reader/writer lock plus per-call timeout around a WalletEngine.

    Writers are preferred: once a writer is waiting, new readers wait too.
    Releasing never depends on the releasing task surviving cancellation.
    """

    def __init__(self, engine: WalletEngine, timeout: float = DEFAULT_ENGINE_TIMEOUT):
        self.engine = engine
        self.timeout = timeout
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @property
    def busy(self) -> bool:
        return self._writer or self._readers > 0

    async def _wake(self) -> None:
        async with self._cond:
            self._cond.notify_all()

    @contextlib.asynccontextmanager
    async def exclusive(self) -> AsyncIterator[WalletEngine]:
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(lambda: not self._writer and self._readers == 0)
            finally:
                self._writers_waiting -= 1
                # Readers blocked on a waiting writer must re-check on cancellation
                self._cond.notify_all()
            self._writer = True
        try:
            yield self.engine
        finally:
            self._writer = False
            await asyncio.shield(self._wake())

    @contextlib.asynccontextmanager
    async def shared(self) -> AsyncIterator[WalletEngine]:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer and self._writers_waiting == 0)
            self._readers += 1
        try:
            yield self.engine
        finally:
            self._readers -= 1
            await asyncio.shield(self._wake())

    async def call(self, operation: str, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """
        Run one engine call bounded by the configured timeout.

        Failures other than GatewayError subclasses are reported as EngineError
        with the original message.
        """
        try:
            return await asyncio.wait_for(func(*args, **kwargs), timeout=self.timeout)
        except TimeoutError as e:
            logger.error(f"Engine call {operation} timed out after {self.timeout}s")
            raise EngineTimeout(f"{operation} timed out after {self.timeout}s") from e
        except GatewayError:
            raise
        except Exception as e:
            logger.warning(f"Engine call {operation} failed: {e}")
            raise EngineError(str(e)) from e

    async def mutating(
        self, operation: str, func: Callable[..., Awaitable[T]], *args, **kwargs
    ) -> T:
        async with self.exclusive():
            return await self.call(operation, func, *args, **kwargs)

    async def reading(
        self, operation: str, func: Callable[..., Awaitable[T]], *args, **kwargs
    ) -> T:
        async with self.shared():
            return await self.call(operation, func, *args, **kwargs)

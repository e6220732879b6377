"""
Test-network faucet.

Shells out to a local funding tool (nigiri by default). Only meant for
regtest development setups.
"""

from __future__ import annotations

import asyncio
import shlex

from loguru import logger
from pydantic import BaseModel, Field

from ark_gateway.errors import FaucetError, InvalidArgument

DEFAULT_FAUCET_COMMAND = "nigiri faucet"
DEFAULT_FAUCET_TIMEOUT = 60.0


class FaucetRequest(BaseModel):
    address: str = Field(..., min_length=1)


class Faucet:
    def __init__(
        self, command: str = DEFAULT_FAUCET_COMMAND, timeout: float = DEFAULT_FAUCET_TIMEOUT
    ):
        self.argv = shlex.split(command)
        if not self.argv:
            raise ValueError("faucet command is empty")
        self.timeout = timeout

    async def fund(self, address: str) -> str:
        """
        Send test coins to address.

        Returns:
            Combined stdout/stderr of the funding tool
        """
        address = address.strip()
        if not address or address.startswith("-"):
            raise InvalidArgument(f"invalid faucet address: {address!r}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *self.argv,
                address,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except FileNotFoundError as e:
            raise FaucetError(f"faucet error: {self.argv[0]} not found") from e

        try:
            out, _ = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise FaucetError(f"faucet error: timed out after {self.timeout}s") from e

        output = out.decode(errors="replace")
        if proc.returncode != 0:
            logger.warning(f"Faucet exited with {proc.returncode}: {output.strip()}")
            raise FaucetError(f"faucet error: exit status {proc.returncode}: {output}")

        logger.info(f"Faucet funded {address}")
        return output

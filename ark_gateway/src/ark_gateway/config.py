"""
Configuration management using pydantic-settings.
"""

from decimal import Decimal
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    # Remote settlement coordinator the wallet is initialized against
    ark_server_url: str = "localhost:7070"
    wallet_password: SecretStr = SecretStr("")

    # Ark client daemon holding keys and wallet state
    ark_daemon_url: str = "http://127.0.0.1:7000"
    wallet_type: Literal["singlekey", "bip32"] = "singlekey"
    client_type: Literal["grpc", "rest"] = "grpc"
    network: Literal["bitcoin", "testnet", "signet", "regtest", "mutinynet"] = "regtest"

    http_host: str = "0.0.0.0"
    http_port: int = 8080
    cors_origins: str = "*"

    log_level: str = "INFO"

    engine_timeout: float = Field(default=60.0, gt=0)

    # Fee estimation assumes a fixed-size transaction and a fixed split
    fee_vbytes: int = Field(default=100, gt=0)
    network_fee_share: Decimal = Field(default=Decimal("0.8"), ge=0, le=1)

    enable_faucet: bool = True
    faucet_command: str = "nigiri faucet"

    def get_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


def get_settings() -> Settings:
    return Settings()

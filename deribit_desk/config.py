"""
Configuration module using Pydantic BaseSettings.
Reads from environment variables and .env file.
"""
from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from deribit_desk.models import Credentials


class Settings(BaseSettings):
    """
    Main configuration for the Deribit trading desk.
    All values can be overridden via environment variables or .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    deribit_env: Literal["testnet", "mainnet"] = Field(
        default="testnet",
        description="Deribit environment: 'testnet' or 'mainnet'",
    )
    deribit_base_url: str = Field(
        default="https://test.deribit.com",
        description="Deribit API base URL (testnet by default)",
    )
    deribit_client_id: str = Field(
        default="",
        description="Deribit API client ID",
    )
    deribit_client_secret: str = Field(
        default="",
        description="Deribit API client secret",
    )

    request_timeout_seconds: float = Field(
        default=10.0,
        description="HTTP timeout for a single JSON-RPC request",
    )
    call_timeout_seconds: float = Field(
        default=30.0,
        description="Deadline for a background call before it is reported as timed out",
    )
    default_order_book_depth: int = Field(
        default=10,
        description="Order book depth used when none is requested",
    )

    log_level: str = Field(
        default="INFO",
        description="Root log level for the desk",
    )
    log_dir: str = Field(
        default="logs",
        description="Directory for log files and the API call audit log",
    )
    api_log_enabled: bool = Field(
        default=False,
        description="If True, append every completed call to a daily JSONL audit file",
    )

    @property
    def is_testnet(self) -> bool:
        """Check if connected to Deribit testnet."""
        return self.deribit_env == "testnet" and "test." in self.deribit_base_url

    @property
    def has_credentials(self) -> bool:
        return bool(self.deribit_client_id and self.deribit_client_secret)

    def credentials(self) -> Credentials:
        """Credential provider for the authenticator."""
        return Credentials(
            client_id=self.deribit_client_id,
            client_secret=self.deribit_client_secret,
        )


settings = Settings()

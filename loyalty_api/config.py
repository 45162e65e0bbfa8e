"""
Configuration for the Course Loyalty API.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


SuiNetwork = Literal["mainnet", "testnet", "devnet"]


class Settings(BaseSettings):
    """
    API configuration settings.

    All settings can be overridden via environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Server
    host: str = Field(
        default="127.0.0.1",
        description="API host (127.0.0.1 for local only, 0.0.0.0 for external)",
    )
    port: int = Field(
        default=8000,
        description="API port",
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Authentication
    # Requests are denied outright when API_SECRET_KEY is unset.
    api_secret_key: Optional[str] = Field(
        default=None,
        description="Shared secret expected in X-API-Key or Authorization: Bearer",
    )

    # Sui network
    sui_network: SuiNetwork = Field(
        default="testnet",
        description="Sui network: mainnet, testnet or devnet",
    )
    sui_rpc_url: Optional[str] = Field(
        default=None,
        description="Fullnode RPC URL override (defaults to the public fullnode for sui_network)",
    )
    sui_private_key: Optional[str] = Field(
        default=None,
        description="Operating private key (suiprivkey1... or legacy base64)",
    )
    sui_gas_budget: int = Field(
        default=10_000_000,
        gt=0,
        description="Gas budget per transaction in MIST",
    )
    sui_rpc_timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout for fullnode calls in seconds",
    )

    # Contract
    package_id: Optional[str] = Field(
        default=None,
        description="online_course_loyalty package ID"
    )
    admin_cap_id: Optional[str] = Field(
        default=None,
        description="AdminCap object ID required for progress updates"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

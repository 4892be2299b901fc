"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mxi.config.business_constants import (
    BSC_CHAIN_ID,
    CONFIRMATION_POLL_INTERVAL_SECONDS,
    PROJECT_WALLET_ADDRESS,
    PURCHASE_MAX_USDT,
    PURCHASE_MIN_USDT,
    REQUIRED_CONFIRMATIONS,
    USDT_CONTRACT_ADDRESS,
    USDT_DECIMALS,
    VESTING_MONTHLY_RATE,
)
from mxi.validators import validate_wallet_address


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Blockchain
    rpc_url: str
    chain_id: int = Field(
        default=BSC_CHAIN_ID, gt=0, description="Chain id purchases settle on"
    )
    usdt_contract_address: str = USDT_CONTRACT_ADDRESS
    usdt_decimals: int = Field(default=USDT_DECIMALS, ge=0, le=36)
    project_wallet_address: str = PROJECT_WALLET_ADDRESS
    required_confirmations: int = Field(
        default=REQUIRED_CONFIRMATIONS,
        ge=1,
        description="Blocks required before a purchase is credited",
    )

    # Purchase corridor
    purchase_min_usdt: Decimal = PURCHASE_MIN_USDT
    purchase_max_usdt: Decimal = PURCHASE_MAX_USDT

    # Vesting
    vesting_monthly_rate: Decimal = Field(
        default=VESTING_MONTHLY_RATE, ge=0, le=1,
        description="Simple monthly vesting rate as a fraction",
    )
    vesting_update_interval_minutes: int = Field(default=5, ge=1)

    # Verification endpoint
    verification_url: str = "http://localhost:8080/verify-usdt-purchase"
    verification_timeout: float = Field(default=30.0, gt=0)
    confirmation_poll_interval: float = Field(
        default=CONFIRMATION_POLL_INTERVAL_SECONDS, gt=0
    )
    pending_purchase_recheck_minutes: int = Field(default=2, ge=1)

    # HTTP API
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8080, ge=1, le=65535)
    health_check_port: int = Field(default=8081, ge=1, le=65535)

    # Redis (for Dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str = "logs/mxi.log"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("usdt_contract_address", "project_wallet_address")
    @classmethod
    def validate_addresses(cls, v: str) -> str:
        """Validate EVM address format."""
        is_valid, error = validate_wallet_address(v)
        if not is_valid:
            raise ValueError(f"Invalid address {v!r}: {error}")
        return v

    @model_validator(mode="after")
    def validate_purchase_corridor(self) -> "Settings":
        """Purchase bounds must form a non-empty corridor."""
        if self.purchase_min_usdt <= 0:
            raise ValueError("PURCHASE_MIN_USDT must be positive")
        if self.purchase_min_usdt > self.purchase_max_usdt:
            raise ValueError(
                "PURCHASE_MIN_USDT must not exceed PURCHASE_MAX_USDT"
            )
        return self

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "DEBUG must be False in production environment. "
                    "Set DEBUG=false in your .env file."
                )
            if self.required_confirmations < REQUIRED_CONFIRMATIONS:
                logger.warning(
                    f"REQUIRED_CONFIRMATIONS={self.required_confirmations} is "
                    f"below the recommended {REQUIRED_CONFIRMATIONS} blocks"
                )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


settings = Settings()

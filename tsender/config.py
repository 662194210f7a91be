from pathlib import Path
from typing import Dict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.airdrop.models import DEFAULT_TOKEN_DECIMALS, OperationKind
from .core.recovery.strategies import RetryConfig


BASE_DIR = Path(__file__).resolve().parents[1]

# Deterministic address of the first contract deployed on a fresh anvil node
ANVIL_CHAIN_ID = 31337
ANVIL_TSENDER_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=True, description="Render logs as JSON lines instead of console output")

    # Chain
    chain_id: int = Field(default=ANVIL_CHAIN_ID, description="Default chain ID for airdrops")
    token_decimals: int = Field(
        default=DEFAULT_TOKEN_DECIMALS,
        ge=0,
        le=77,
        description="Decimals assumed when token metadata is unavailable",
    )
    dispatcher_addresses: Dict[int, str] = Field(
        default_factory=lambda: {ANVIL_CHAIN_ID: ANVIL_TSENDER_ADDRESS},
        description="chain ID -> TSender contract address (JSON in env)",
    )

    # Retry limits per remote call
    allowance_max_retries: int = Field(default=3, ge=0, description="Retries for allowance reads")
    approve_max_retries: int = Field(default=2, ge=0, description="Retries for approve submissions")
    transfer_max_retries: int = Field(default=2, ge=0, description="Retries for airdrop submissions")

    # Backoff
    retry_base_delay_seconds: float = Field(default=1.0, ge=0, description="Delay before the first retry")
    retry_max_delay_seconds: float = Field(default=10.0, ge=0, description="Upper bound on any retry delay")
    retry_backoff_factor: float = Field(default=2.0, ge=1, description="Multiplier applied per attempt")

    def retry_config_for(self, kind: OperationKind) -> RetryConfig:
        """Build the RetryConfig for a remote operation."""

        max_retries: Dict[OperationKind, int] = {
            OperationKind.CHECK_ALLOWANCE: self.allowance_max_retries,
            OperationKind.APPROVE: self.approve_max_retries,
            OperationKind.TRANSFER: self.transfer_max_retries,
        }
        return RetryConfig(
            max_retries=max_retries[kind],
            base_delay_seconds=self.retry_base_delay_seconds,
            max_delay_seconds=self.retry_max_delay_seconds,
            backoff_factor=self.retry_backoff_factor,
        )


# Global settings instance
settings = Settings()

"""
Application settings.

Loads configuration from COMMISSIONS_* environment variables using
pydantic-settings.
"""

from decimal import Decimal
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="COMMISSIONS_",
        env_file=".env",
        extra="ignore",
    )

    # HTTP
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"]
    )

    # Engine
    batch_size: int = Field(default=15, ge=1, description="Investments evaluated per batch")
    default_role_rate: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        lt=1,
        description="Monthly rate used when a role's rate is missing",
    )
    use_rate_table: bool = True
    eligibility_days: int = Field(
        default=60,
        ge=0,
        description="Days between deposit and the first payable cutoff (D+N)",
    )

    # Logging
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()

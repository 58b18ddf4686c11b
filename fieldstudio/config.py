"""
Application Configuration

Uses pydantic-settings for environment variable loading with validation.
Designer and catalog defaults are centralized here.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings loaded from environment variables.

    Environment variables can be set directly or via .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FIELDSTUDIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================
    environment: Literal["development", "testing", "production"] = Field(
        default="development",
        description="Runtime environment"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # ==========================================================================
    # Layout Designer
    # ==========================================================================
    default_columns: int = Field(
        default=3,
        description="Grid columns used when no saved layout exists"
    )

    default_spacing: Literal["compact", "normal", "spacious"] = Field(
        default="normal",
        description="Field spacing used when no saved layout exists"
    )

    min_visible_rows: int = Field(
        default=3,
        ge=1,
        description="Minimum number of grid rows shown so there is always a drop target"
    )

    # ==========================================================================
    # Field Catalog
    # ==========================================================================
    custom_field_id_prefix: str = Field(
        default="custom",
        description="Prefix for ids of fields added by users"
    )

    default_field_id_prefix: str = Field(
        default="field",
        description="Prefix for ids of fields seeded from module defaults"
    )

    @field_validator("default_columns")
    @classmethod
    def validate_default_columns(cls, v: int) -> int:
        if v not in (2, 3, 4):
            raise ValueError("default_columns must be 2, 3 or 4")
        return v

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()

"""
Shared configuration management for the state permission layer.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class HierarchyOrder(str, Enum):
    """Order in which nested scopes contribute their privilege groups."""
    ANCESTOR_FIRST = "ancestor_first"
    DESCENDANT_FIRST = "descendant_first"


class Settings(BaseSettings):
    """Configuration for the authorization engine."""

    model_config = SettingsConfigDict(
        env_prefix="PERMISSIONS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Evaluation
    hierarchy_order: HierarchyOrder = Field(default=HierarchyOrder.ANCESTOR_FIRST)
    cancel_pending_checks: bool = Field(default=False)
    warn_on_unregistered: bool = Field(default=True)

    # Observability
    enable_metrics: bool = Field(default=True)


@lru_cache()
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()

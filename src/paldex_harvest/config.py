# ABOUTME: Application configuration using Pydantic Settings for environment variables
# ABOUTME: Provides type-safe access to upstream site, cache, concurrency and logging settings

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="PALDEX_HARVEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown environment variables
    )

    # Upstream site
    base_url: str = Field(default="https://paldb.cc", description="Origin serving list and detail pages")
    cdn_base_url: str = Field(default="https://cdn.paldb.cc", description="Origin serving image assets")
    locale: str = Field(default="en", description="Locale path prefix used for every page URL")
    accept_language: str = Field(default="en-US,en;q=0.9", description="Accept-Language header for page requests")
    user_agent: str = Field(
        default="paldex-harvest/0.1",
        description="User-Agent header for page requests",
    )
    request_timeout_seconds: float = Field(default=15.0, gt=0, description="Timeout for a single page request")

    # Cache Configuration
    list_ttl_seconds: float = Field(default=600.0, ge=0, description="How long a parsed list page stays fresh")
    detail_ttl_seconds: float = Field(default=600.0, ge=0, description="How long a parsed detail page stays fresh")

    # Concurrency
    max_concurrent_details: int = Field(default=3, ge=1, description="Detail pages fetched in parallel at most")

    # Dependency tree guards
    tree_max_depth: int = Field(default=32, ge=1, description="Maximum number of levels kept in a dependency tree")
    tree_max_children: int = Field(default=64, ge=1, description="Maximum children kept per tree node")
    tree_max_nodes: int = Field(default=2048, ge=1, description="Maximum nodes kept in one dependency tree")

    # Logging Configuration
    log_mode: Literal["interactive", "production"] = Field(default="interactive", description="Logging output mode")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging verbosity level"
    )

    log_file: Path | None = Field(default=None, description="Custom log file path (overrides default)")


# Global config instance - lazy loaded when first accessed
_config_instance: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Creates the config on first access, subsequent calls return the same instance.

    Returns:
        Config: The application configuration instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance


def reload_config() -> Config:
    """Reload configuration from environment variables.

    Useful for testing or when environment variables change at runtime.

    Returns:
        Config: A fresh configuration instance
    """
    global _config_instance
    _config_instance = Config()
    return _config_instance

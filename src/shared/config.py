"""Configuration management for the gateway OAuth loader.

Supports YAML configuration files and environment variable overrides.
Configuration is loaded once and cached for performance.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoaderSettings(BaseSettings):
    """OAuth definition loading configuration."""
    definitions_path: str = Field(
        default="config/oauth",
        description="Directory holding OAuth server definition files"
    )
    replace_existing_routes: bool = Field(
        default=True,
        description="Replace a route whose listen path is already registered"
    )

    model_config = SettingsConfigDict(
        env_prefix="GATEWAY_LOADER_",
        env_file=".env",
        extra="ignore"
    )


class AdminSettings(BaseSettings):
    """Admin API configuration."""
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8081)

    model_config = SettingsConfigDict(
        env_prefix="GATEWAY_ADMIN_",
        env_file=".env",
        extra="ignore"
    )


class Settings(BaseSettings):
    """Main application settings."""
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")

    loader: LoaderSettings = Field(default_factory=LoaderSettings)
    admin: AdminSettings = Field(default_factory=AdminSettings)

    model_config = SettingsConfigDict(
        env_prefix="GATEWAY_",
        env_file=".env",
        extra="ignore"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file, falling back to defaults."""
        return cls(**load_yaml_config(path))


def load_yaml_config(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file."""
    path = Path(path)
    if not path.exists():
        return {}

    with open(path) as f:
        return yaml.safe_load(f) or {}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    config_path = os.environ.get("GATEWAY_CONFIG_PATH", "config/settings.yaml")
    return Settings.from_yaml(config_path)

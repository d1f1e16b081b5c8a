"""
Web tier Configuration

This module provides configuration management for the HTTP-facing service using Pydantic Settings.
All configuration values can be set via environment variables or .env file.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class WebConfig(BaseSettings):
    """
    Web tier Configuration

    All settings can be overridden via environment variables.
    Example: WEB_PORT=9000 WIKIDB_URL=http://db-host:8100 uvicorn src.web.main:app
    """

    # ========== Web Service Configuration ==========
    web_host: str = Field(
        default="0.0.0.0",
        description="Web service host address"
    )
    web_port: int = Field(
        default=8080,
        description="Web service port"
    )
    web_workers: int = Field(
        default=2,
        ge=1,
        description="Number of web worker processes started by scripts/start_service.py"
    )

    # ========== Channel Configuration ==========
    channel_mode: Literal["http", "local"] = Field(
        default="http",
        description="'http' sends to the wikidb service, 'local' hosts the dispatcher in-process"
    )
    wikidb_url: str = Field(
        default="http://localhost:8100",
        description="wikidb service base URL (http mode)"
    )
    wikidb_queue: str = Field(
        default="wikidb.queue",
        description="Channel address of the wikidb dispatcher"
    )

    # ========== Timeout Configuration ==========
    http_connect_timeout: int = Field(
        default=5,
        description="HTTP connection timeout in seconds"
    )
    reply_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for a wikidb reply before failing the request"
    )

    # ========== Logging Configuration ==========
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def get_config() -> WebConfig:
    """
    Build the configuration from the current environment.

    Returns:
        WebConfig: A fresh configuration instance
    """
    return WebConfig()

"""
wikidb (data-access tier) Configuration

This module provides configuration management for the wikidb service using Pydantic Settings.
All configuration values can be set via environment variables or .env file.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class WikiDbConfig(BaseSettings):
    """
    wikidb Service Configuration

    All settings can be overridden via environment variables.
    Example: WIKIDB_PORT=9100 MYSQL_HOST=db uvicorn src.wikidb.service:app
    """

    # ========== Service Configuration ==========
    wikidb_host: str = Field(
        default="0.0.0.0",
        description="wikidb service host address"
    )
    wikidb_port: int = Field(
        default=8100,
        description="wikidb service port"
    )

    # ========== Channel Configuration ==========
    wikidb_queue: str = Field(
        default="wikidb.queue",
        description="Channel address the dispatcher consumes"
    )
    consumer_instances: int = Field(
        default=1,
        ge=1,
        description="Number of dispatcher consumers registered on the address"
    )
    reply_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds the bus endpoint waits for a dispatcher reply"
    )

    # ========== MySQL Configuration ==========
    mysql_host: str = Field(default="127.0.0.1", description="MySQL host")
    mysql_port: int = Field(default=33061, description="MySQL port")
    mysql_user: str = Field(default="root", description="MySQL user")
    mysql_password: str = Field(default="1234", description="MySQL password")
    mysql_database: str = Field(default="wiki_db", description="MySQL database")
    db_pool_size: int = Field(
        default=4,
        ge=1,
        description="Maximum number of pooled MySQL connections"
    )
    db_pool_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Seconds to wait for a free pooled connection"
    )
    db_connect_timeout: int = Field(
        default=5,
        description="MySQL connection timeout in seconds"
    )

    # ========== Query Catalog ==========
    queries_file: Optional[str] = Field(
        default=None,
        description="Path of the SQL query file (defaults to the bundled db-queries.env)"
    )

    # ========== Logging Configuration ==========
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def get_config() -> WikiDbConfig:
    """
    Build the configuration from the current environment.

    Returns:
        WikiDbConfig: A fresh configuration instance
    """
    return WikiDbConfig()

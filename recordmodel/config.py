"""
Configuration settings for recordmodel.

Uses Pydantic Settings to load environment variables for the named database
connections, the message locale and logging. The primary connection is built
from the flat ``DB_*`` variables; a read replica and any number of extra
named connections can be layered on top.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Dict, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONNECTION = "default"
REPLICA_CONNECTION = "replica"


class ConnectionConfig(BaseModel):
    """
    Parameters of one named database connection.

    ``timezone`` is the zone used to stamp audit columns on writes; ``None``
    means UTC (``+00:00``).
    """

    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: str = "postgres"
    dbname: str = "recordmodel"
    timezone: Optional[str] = None
    pool_min_size: int = Field(1, ge=0)
    pool_max_size: int = Field(10, ge=1)
    connect_timeout: float = Field(5.0, gt=0)
    statement_timeout_ms: Optional[int] = Field(None, ge=0)

    model_config = {"frozen": True}


class Settings(BaseSettings):
    # Primary database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("recordmodel", alias="DB_NAME")
    db_timezone: Optional[str] = Field(None, alias="DB_TIMEZONE")

    # Pooling
    db_pool_min_size: int = Field(1, alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(10, alias="DB_POOL_MAX_SIZE")
    db_connect_timeout: float = Field(5.0, alias="DB_CONNECT_TIMEOUT")
    db_statement_timeout_ms: Optional[int] = Field(None, alias="DB_STATEMENT_TIMEOUT_MS")

    # Additional connections
    db_replica_host: Optional[str] = Field(None, alias="DB_REPLICA_HOST")
    db_connections: Dict[str, ConnectionConfig] = Field(
        default_factory=dict, alias="DB_CONNECTIONS"
    )

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    app_locale: str = Field("en", alias="APP_LOCALE")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def primary_connection(self) -> ConnectionConfig:
        return ConnectionConfig(
            host=self.db_host,
            port=self.db_port,
            user=self.db_user,
            password=self.db_password,
            dbname=self.db_name,
            timezone=self.db_timezone,
            pool_min_size=self.db_pool_min_size,
            pool_max_size=self.db_pool_max_size,
            connect_timeout=self.db_connect_timeout,
            statement_timeout_ms=self.db_statement_timeout_ms,
        )

    def connection_configs(self) -> Dict[str, ConnectionConfig]:
        """
        Return every named connection known to the settings.

        Explicit ``DB_CONNECTIONS`` entries win over the derived ``default``
        and ``replica`` connections.
        """
        primary = self.primary_connection()
        configs: Dict[str, ConnectionConfig] = {DEFAULT_CONNECTION: primary}
        if self.db_replica_host:
            configs[REPLICA_CONNECTION] = primary.model_copy(update={"host": self.db_replica_host})
        configs.update(self.db_connections)
        return configs


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = [
    "ConnectionConfig",
    "DEFAULT_CONNECTION",
    "REPLICA_CONNECTION",
    "Settings",
    "get_settings",
]

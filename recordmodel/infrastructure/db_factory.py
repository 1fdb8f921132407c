"""
Database connection factory utilities for recordmodel.

Builds DSNs from named ``ConnectionConfig`` entries and opens psycopg
connection pools for them. Opening a pool retries transient connection
failures using tenacity; statements executed later are never retried.
"""

from __future__ import annotations

from typing import Optional

import psycopg
from psycopg import sql
from psycopg_pool import ConnectionPool, PoolTimeout
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from recordmodel.config import ConnectionConfig
from recordmodel.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(config: ConnectionConfig) -> str:
    """Compose a DSN string from a connection config."""
    return (
        f"postgresql://{config.user}:{config.password}"
        f"@{config.host}:{config.port}/{config.dbname}"
    )


def apply_statement_timeout(cursor: psycopg.Cursor, timeout_ms: Optional[int]) -> None:
    """Set ``statement_timeout`` for the cursor's session, when configured."""
    if timeout_ms is None:
        return
    cursor.execute(
        sql.SQL("SET statement_timeout = {}").format(sql.Literal(int(timeout_ms)))
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, PoolTimeout)),
    reraise=True,
)
def open_pool(config: ConnectionConfig, name: str = "default") -> ConnectionPool:
    """
    Open a connection pool for ``config`` and wait until it is usable.

    Retries up to 3 times with exponential backoff for transient connection errors.

    Parameters
    ----------
    config : ConnectionConfig
        Connection parameters and pool sizing.
    name : str
        Connection name, used for the pool name and log records.

    Returns
    -------
    ConnectionPool
        An open psycopg pool.

    Raises
    ------
    PoolTimeout
        If no connection could be established after all retry attempts.
    """
    pool = ConnectionPool(
        conninfo=build_dsn(config),
        min_size=config.pool_min_size,
        max_size=config.pool_max_size,
        name=f"recordmodel-{name}",
        open=False,
    )
    try:
        pool.open(wait=True, timeout=config.connect_timeout)
    except (psycopg.OperationalError, PoolTimeout):
        pool.close()
        log.warning(
            "Connection pool failed to open",
            extra={"connection": name, "host": config.host, "port": config.port},
        )
        raise
    log.info(
        "Connection pool opened",
        extra={"connection": name, "host": config.host, "dbname": config.dbname},
    )
    return pool


__all__ = [
    "apply_statement_timeout",
    "build_dsn",
    "open_pool",
]

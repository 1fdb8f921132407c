"""
Infrastructure package for recordmodel.

Centralizes database connectivity concerns (pool factory, statement builders,
named database handles). Keep this layer focused on I/O and resource
management, decoupled from model policy.
"""

from recordmodel.infrastructure.database import Database
from recordmodel.infrastructure.db_factory import apply_statement_timeout, build_dsn, open_pool
from recordmodel.infrastructure.query import Delete, Insert, Replace, Result, Select, Update

__all__ = [
    "Database",
    "Delete",
    "Insert",
    "Replace",
    "Result",
    "Select",
    "Update",
    "apply_statement_timeout",
    "build_dsn",
    "open_pool",
]

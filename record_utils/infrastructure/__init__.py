"""
Infrastructure package for record-utils.

Centralizes database connectivity concerns (DSN building, connections,
pooling). Keep this layer focused on I/O and resource management, decoupled
from the accessor logic.
"""

from record_utils.infrastructure.db_factory import (
    PoolManager,
    apply_statement_timeout,
    build_dsn,
    get_sync_connection,
    get_sync_pool,
)

__all__ = [
    "PoolManager",
    "apply_statement_timeout",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
]

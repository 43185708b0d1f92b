"""Infra DB: pool de Postgres, errores tipados y transacciones."""

from .errors import (
    DatabaseConnectionError,
    DatabasePoolError,
    PoolAlreadyInitializedError,
    PoolNotInitializedError,
)
from .pool import close_pool, get_pool, init_pool, reset_pool, transaction

__all__ = [
    "init_pool",
    "get_pool",
    "close_pool",
    "reset_pool",
    "transaction",
    "DatabasePoolError",
    "PoolAlreadyInitializedError",
    "PoolNotInitializedError",
    "DatabaseConnectionError",
]

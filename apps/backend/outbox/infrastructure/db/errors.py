"""
===============================================================================
CRC CARD — infrastructure/db/errors.py
===============================================================================

Componente:
  Errores tipados del Pool/Conectividad

Responsabilidades:
  - Distinguir "pool sin inicializar" / "doble init" / "conexión inválida"
    de los errores de negocio del outbox.
  - Permitir que el worker loguee un fallo de conectividad sin caerse.
===============================================================================
"""


class DatabasePoolError(Exception):
    """Base de errores del pool de Postgres."""


class PoolAlreadyInitializedError(DatabasePoolError):
    """init_pool() llamado dos veces en el mismo proceso."""


class PoolNotInitializedError(DatabasePoolError):
    """Se pidió el pool antes de init_pool()."""


class DatabaseConnectionError(DatabasePoolError):
    """No se pudo adquirir o validar una conexión del pool."""

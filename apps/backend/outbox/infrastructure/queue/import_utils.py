"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Validación de rutas de jobs

Responsabilidades:
    - Verificar que un "dotted path" (module.attr) exista y sea callable,
      para detectar jobs rotos al construir el adapter y no en el worker.
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache
from importlib import import_module

from .errors import QueueConfigurationError


@lru_cache(maxsize=32)
def is_importable_dotted_path(dotted_path: str) -> bool:
    """True si `dotted_path` importa y apunta a un callable."""
    module_name, _, attr_name = (dotted_path or "").rpartition(".")
    if not module_name or not attr_name:
        return False
    try:
        module = import_module(module_name)
    except ModuleNotFoundError:
        return False
    return callable(getattr(module, attr_name, None))


def require_importable(dotted_path: str) -> str:
    """Fail-fast: levanta QueueConfigurationError si el job no es importable."""
    if not is_importable_dotted_path(dotted_path):
        raise QueueConfigurationError(
            f"Job path no importable para RQ: {dotted_path}. "
            "Revisar `infrastructure/queue/job_paths.py` y `outbox/worker/jobs.py`."
        )
    return dotted_path

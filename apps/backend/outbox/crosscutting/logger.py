# apps/backend/outbox/crosscutting/logger.py
"""
===============================================================================
MÓDULO: Logger estructurado (JSON) con contexto de evento
===============================================================================

Objetivo
--------
Cada línea de log del outbox es un objeto JSON con:
- nivel, logger, mensaje y origen (módulo/función/línea)
- contexto del request o del evento en curso (request_id, event_id,
  event_type, trace_id, span_id)
- los campos de `extra={...}` ya saneados

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  JSONFormatter + setup_logger()

Responsabilidades:
  - Formatear LogRecord -> JSON
  - Redactar claves sensibles (credenciales, URLs con password)
  - Acotar strings y estructuras anidadas (payloads, last_error)

Colaboradores:
  - outbox/context.py (ContextVars)
  - crosscutting/config.py (log_level / log_json)

Notas:
  - Los módulos de aplicación usan logging.getLogger(__name__): todos cuelgan
    de "outbox" y heredan el handler configurado acá.
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import re
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

# Atributos que trae todo LogRecord: lo que no esté acá vino por `extra`.
_RECORD_ATTRS: frozenset[str] = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

_SENSITIVE_KEY = re.compile(
    r"(password|passwd|secret|token|authorization|api[_-]?key|credential|"
    r"private[_-]?key|database_url|redis_url)",
    re.IGNORECASE,
)

REDACTED = "***REDACTADO***"
TRUNCATED = "***TRUNCADO***"


class _Redactor:
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      _Redactor

    Responsabilidades:
      - Reemplazar valores cuya clave parece una credencial
      - Recortar strings largos y cortar anidamiento profundo
      - Devolver siempre algo serializable a JSON
    ----------------------------------------------------------------------------
    """

    def __init__(self, max_str: int = 4_000, max_depth: int = 4, max_items: int = 50):
        self._max_str = max_str
        self._max_depth = max_depth
        self._max_items = max_items

    def clean(self, value: Any, *, key: str | None = None, depth: int = 0) -> Any:
        if key is not None and _SENSITIVE_KEY.search(key):
            return REDACTED
        if depth > self._max_depth:
            return TRUNCATED

        if value is None or isinstance(value, (bool, int, float)):
            return value
        if isinstance(value, str):
            return self._clip(value)
        if isinstance(value, (bytes, bytearray)):
            return f"<bytes {len(value)}B>"
        if isinstance(value, dict):
            items = list(value.items())[: self._max_items]
            return {
                str(k): self.clean(v, key=str(k), depth=depth + 1) for k, v in items
            }
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self.clean(v, depth=depth + 1) for v in list(value)[: self._max_items]]
        return self._clip(str(value))

    def _clip(self, text: str) -> str:
        if len(text) <= self._max_str:
            return text
        return f"{text[: self._max_str]}…(+{len(text) - self._max_str} chars)"


class JSONFormatter(logging.Formatter):
    """Formatter JSON de una línea por registro (ver CRC del módulo)."""

    def __init__(self) -> None:
        super().__init__()
        self._redactor = _Redactor()

    def format(self, record: logging.LogRecord) -> str:
        from ..context import get_context_dict

        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "pid": os.getpid(),
            **get_context_dict(),
        }

        extras = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}
        for key, value in extras.items():
            entry[key] = self._redactor.clean(value, key=key)

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": self._redactor.clean(str(exc_value)),
                "stacktrace": traceback.format_exception(exc_type, exc_value, exc_tb),
            }

        return json.dumps(entry, ensure_ascii=False, default=str, separators=(",", ":"))


def _resolve_log_options() -> tuple[str, bool]:
    """Nivel/formato desde Settings; INFO + JSON si Settings no valida."""
    from pydantic import ValidationError

    from .config import get_settings

    try:
        settings = get_settings()
    except ValidationError:
        return "INFO", True
    return (settings.log_level or "INFO").upper(), bool(settings.log_json)


def setup_logger(name: str = "outbox") -> logging.Logger:
    """
    Configura el logger raíz del paquete (idempotente ante reimport).
    """
    log = logging.getLogger(name)
    level, use_json = _resolve_log_options()
    log.setLevel(getattr(logging, level, logging.INFO))

    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            JSONFormatter()
            if use_json
            else logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        log.addHandler(handler)

    return log


logger = setup_logger()

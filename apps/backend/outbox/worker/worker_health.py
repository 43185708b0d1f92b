"""
===============================================================================
TARJETA CRC — worker/worker_health.py (Health & Readiness del Worker)
===============================================================================

Responsabilidades:
  - Verificar Postgres (siempre) y Redis (solo si REDIS_URL está configurado).
  - Reportar si el poller del outbox sigue vivo.
  - Payloads simples para /healthz y /readyz + CLI de healthcheck (exit 0/1).

Reglas:
  - Nunca lanzar excepciones al caller: devolver estado.
  - Timeouts cortos: un healthcheck lento es un healthcheck roto.

Colaboradores:
  - crosscutting.config.get_settings
  - psycopg / redis.Redis
  - application.poller.OutboxPoller
===============================================================================
"""

from __future__ import annotations

import json
import time
from typing import Any

import psycopg
from redis import Redis

from ..application.poller import OutboxPoller
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger

_START_TIME = time.time()


def _check_db(database_url: str) -> bool:
    if not database_url:
        return False
    try:
        with psycopg.connect(database_url, connect_timeout=2) as conn:
            conn.execute("SELECT 1")
        return True
    except Exception as exc:
        logger.warning(
            "Readiness worker: DB no disponible",
            extra={"error_type": type(exc).__name__},
        )
        return False


def _check_redis(redis_url: str) -> bool:
    try:
        redis = Redis.from_url(redis_url, socket_connect_timeout=2, socket_timeout=2)
        return bool(redis.ping())
    except Exception as exc:
        logger.warning(
            "Readiness worker: Redis no disponible",
            extra={"error_type": type(exc).__name__},
        )
        return False


def readiness_payload(poller: OutboxPoller | None = None) -> dict[str, Any]:
    """
    Readiness: DB conectada, Redis conectado si está configurado y, si se
    pasa, el poller corriendo.
    """
    settings = get_settings()
    db_ok = _check_db(settings.database_url)

    redis_url = (settings.redis_url or "").strip()
    if redis_url:
        redis_ok = _check_redis(redis_url)
        redis_status = "connected" if redis_ok else "disconnected"
    else:
        redis_ok = True
        redis_status = "not_configured"

    poller_ok = poller is None or poller.is_running()

    payload: dict[str, Any] = {
        "ok": bool(db_ok and redis_ok and poller_ok),
        "db": "connected" if db_ok else "disconnected",
        "redis": redis_status,
    }
    if poller is not None:
        payload["poller"] = "running" if poller_ok else "stopped"
    return payload


def health_payload() -> dict[str, Any]:
    """Liveness: el proceso responde (no valida dependencias)."""
    return {
        "ok": True,
        "uptime_seconds": int(time.time() - _START_TIME),
    }


def main() -> None:
    payload = readiness_payload()
    print(json.dumps(payload))
    raise SystemExit(0 if payload.get("ok") else 1)


if __name__ == "__main__":
    main()

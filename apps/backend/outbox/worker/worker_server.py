"""
===============================================================================
TARJETA CRC — worker/worker_server.py (HTTP liviano para el Worker)
===============================================================================

Responsabilidades:
  - Exponer endpoints operativos del worker del outbox:
      * GET /healthz  (liveness)
      * GET /readyz   (readiness: DB + Redis + poller)
      * GET /metrics  (Prometheus; opcionalmente protegido con X-API-Key)
  - No loguear secretos (API keys).

Patrones aplicados:
  - Minimal HTTP Server: http.server (sin framework web).
  - Best-effort: si el server no puede iniciar, el worker sigue.

Colaboradores:
  - worker_health.health_payload / readiness_payload
  - crosscutting.metrics.get_metrics_response
  - crosscutting.config (metrics_require_auth / metrics_api_key)
===============================================================================
"""

from __future__ import annotations

import hmac
import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlparse

from ..application.poller import OutboxPoller
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.metrics import get_metrics_response
from .worker_health import health_payload, readiness_payload


def metrics_authorized(api_key: str | None) -> tuple[bool, int]:
    """
    Autoriza /metrics. Retorna (allowed, http_status).

    - Sin auth requerida -> 200.
    - Sin header -> 401. Key incorrecta o sin key configurada -> 403.
    """
    settings = get_settings()
    if not settings.metrics_require_auth:
        return True, 200

    provided = (api_key or "").strip()
    if not provided:
        return False, 401

    expected = settings.metrics_api_key.strip()
    if not expected:
        return False, 403

    if hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        return True, 200
    return False, 403


class _WorkerHandler(BaseHTTPRequestHandler):
    """Handler HTTP minimalista para endpoints operativos del worker."""

    poller: OutboxPoller | None = None

    def do_GET(self) -> None:
        path = urlparse(self.path).path

        if path == "/healthz":
            self._write_json(200, health_payload())
            return

        if path == "/readyz":
            payload = readiness_payload(self.poller)
            self._write_json(200 if payload.get("ok") else 503, payload)
            return

        if path == "/metrics":
            allowed, status = metrics_authorized(self.headers.get("X-API-Key"))
            if not allowed:
                self._write_json(status, {"detail": "Acceso denegado para métricas"})
                return

            body, content_type = get_metrics_response()
            self.send_response(200)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
            return

        self.send_response(404)
        self.end_headers()

    def log_message(self, format: str, *args) -> None:
        logger.debug(
            "Worker HTTP request",
            extra={
                "client": self.client_address[0] if self.client_address else None,
                "path": getattr(self, "path", None),
            },
        )

    def _write_json(self, status: int, payload: dict) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


def start_worker_http_server(
    port: int, *, poller: OutboxPoller | None = None
) -> ThreadingHTTPServer | None:
    """
    Inicia el HTTP server en un thread daemon. None si no pudo bindear.
    """
    handler = type("OutboxWorkerHandler", (_WorkerHandler,), {"poller": poller})
    try:
        server = ThreadingHTTPServer(("0.0.0.0", port), handler)
    except OSError as exc:
        logger.warning("Worker HTTP server no pudo iniciar", extra={"error": str(exc)})
        return None

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    logger.info("Worker HTTP server iniciado", extra={"port": port})
    return server


__all__ = ["start_worker_http_server", "metrics_authorized"]

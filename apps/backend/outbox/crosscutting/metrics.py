"""
===============================================================================
ARCHIVO: crosscutting/metrics.py
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Métricas (Prometheus) del outbox

Responsabilidades:
    - Definir métricas Prometheus en un registry propio.
    - Proveer funciones pequeñas y estables para registrar eventos/duraciones.
    - Cuidar cardinalidad (NO event_id, NO actor_id, NO SQL completo).
    - Exponer helpers para generar la respuesta /metrics.

Colaboradores:
    - application/publisher: publicaciones, fallos tragados, wake-ups.
    - domain/actors: actores desconocidos coercionados a system.
    - application/dispatcher: fallos de handlers.
    - application/outbox_worker: resultado por fila y duración de batch.
    - infrastructure/db/instrumentation: duración de queries.
    - worker/worker_server: endpoint /metrics.

Notas:
    - Los fallos del publish "simple" se tragan por contrato; este contador
      es la única forma de verlos desde afuera.
    - event_type como label es aceptable: la taxonomía es acotada.
===============================================================================
"""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_registry = CollectorRegistry()


# ------------------------
# Publicación
# ------------------------
_events_published_total = Counter(
    "outbox_events_published_total",
    "Eventos insertados en el Event Store",
    ["mode"],
    registry=_registry,
)

_publish_failures_total = Counter(
    "outbox_publish_failures_total",
    "Fallos al publicar eventos (mode=simple se tragan, mode=tx se propagan)",
    ["mode"],
    registry=_registry,
)

_unknown_actor_total = Counter(
    "outbox_unknown_actor_total",
    "Actores no reconocidos coercionados al actor system",
    registry=_registry,
)

# ------------------------
# Wake-up bridge
# ------------------------
_wakeup_total = Counter(
    "outbox_wakeup_total",
    "Wake-ups del worker por resultado (sent/coalesced/failed)",
    ["status"],
    registry=_registry,
)

# ------------------------
# Worker / dispatch
# ------------------------
_events_processed_total = Counter(
    "outbox_events_processed_total",
    "Filas del outbox procesadas por resultado (processed/failed)",
    ["status"],
    registry=_registry,
)

_handler_failures_total = Counter(
    "outbox_handler_failures_total",
    "Handlers que lanzaron excepción durante un dispatch",
    ["event_type"],
    registry=_registry,
)

_handlers_queued_total = Counter(
    "outbox_handlers_queued_total",
    "Handlers encolados para ejecución diferida",
    registry=_registry,
)

_retry_exhausted_total = Counter(
    "outbox_retry_exhausted_total",
    "Eventos que alcanzaron el techo de reintentos (dead-letter)",
    registry=_registry,
)

_poll_failures_total = Counter(
    "outbox_poll_failures_total",
    "Fallos al consultar filas pendientes del Event Store",
    registry=_registry,
)

_batch_duration = Histogram(
    "outbox_batch_duration_seconds",
    "Duración de una corrida del worker (segundos)",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
    registry=_registry,
)

_batch_size = Histogram(
    "outbox_batch_selected_count",
    "Filas seleccionadas por corrida del worker",
    buckets=(0, 1, 2, 5, 10, 25, 50, 100),
    registry=_registry,
)

# ------------------------
# DB (baja cardinalidad)
# ------------------------
_db_query_duration = Histogram(
    "outbox_db_query_duration_seconds",
    "Duración de queries DB (segundos)",
    ["kind"],
    buckets=(0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
    registry=_registry,
)


# -----------------------------------------------------------------------------
# API pública (helpers de registro)
# -----------------------------------------------------------------------------


def record_event_published(mode: str) -> None:
    """Cuenta eventos insertados. mode: "tx" | "simple"."""
    _events_published_total.labels(mode=mode).inc()


def record_publish_failure(mode: str) -> None:
    """Cuenta fallos de publicación. mode: "tx" | "simple"."""
    _publish_failures_total.labels(mode=mode).inc()


def record_unknown_actor(count: int = 1) -> None:
    """Cuenta actores no reconocidos."""
    _unknown_actor_total.inc(count)


def record_wakeup(status: str) -> None:
    """Cuenta wake-ups. status: "sent" | "coalesced" | "failed"."""
    _wakeup_total.labels(status=status).inc()


def record_event_outcome(status: str) -> None:
    """Cuenta filas procesadas. status: "processed" | "failed"."""
    _events_processed_total.labels(status=status).inc()


def record_handler_failure(event_type: str) -> None:
    """Cuenta handlers que fallaron para un tipo de evento."""
    _handler_failures_total.labels(event_type=event_type or "unknown").inc()


def record_handler_queued(count: int = 1) -> None:
    """Cuenta handlers encolados."""
    _handlers_queued_total.inc(count)


def record_retry_exhausted(count: int = 1) -> None:
    """Cuenta eventos que llegaron al techo de reintentos."""
    _retry_exhausted_total.inc(count)


def record_poll_failure(count: int = 1) -> None:
    """Cuenta polls fallidos."""
    _poll_failures_total.inc(count)


def observe_batch(selected: int, duration_seconds: float) -> None:
    """Observa tamaño y duración de una corrida del worker."""
    _batch_size.observe(selected)
    _batch_duration.observe(duration_seconds)


def observe_db_query_duration(kind: str, seconds: float) -> None:
    """Observa duración de una query DB.

    Reglas:
      - `kind` debe ser baja cardinalidad (SELECT/INSERT/UPDATE/...).
      - NO incluir SQL completo.
    """
    _db_query_duration.labels(kind=(kind or "UNKNOWN").upper()).observe(seconds)


# -----------------------------------------------------------------------------
# Exposición del endpoint /metrics
# -----------------------------------------------------------------------------


def get_metrics_response() -> tuple[bytes, str]:
    """Genera el body y content-type para /metrics."""
    return generate_latest(_registry), CONTENT_TYPE_LATEST


def get_registry() -> CollectorRegistry:
    """Registry propio (tests leen valores con get_sample_value)."""
    return _registry

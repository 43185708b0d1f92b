"""
===============================================================================
TARJETA CRC — outbox/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer Event Store, publisher, registry, dispatcher y worker.
  - Decidir adapters según Settings (Postgres vs in-memory, RQ vs no-op).
  - Mantener singletons por proceso con lru_cache.

Colaboradores:
  - crosscutting.config.get_settings
  - infrastructure.repositories (PostgresEventStore / InMemoryEventStore)
  - infrastructure.queue (RQOutboxWakeUp / RQHandlerJobQueue)
  - handlers.register_event_handlers

Notas:
  - Este archivo NO contiene lógica de negocio.
  - El registry se arma vacío; `build_handler_registry()` registra los
    handlers de dominio y lo congela (boot). Tests arman su propio registry.
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from redis import Redis

from .application import EventDispatcher, EventPublisher, HandlerRegistry, OutboxWorker
from .crosscutting.config import get_settings
from .domain.repositories import EventStore
from .domain.services import HandlerJobQueue, NoopWakeUp, OutboxWakeUp
from .infrastructure.queue import RQHandlerJobQueue, RQOutboxWakeUp, RQQueueConfig
from .infrastructure.repositories import InMemoryEventStore, PostgresEventStore


def _is_test_env() -> bool:
    """app_env ∈ {"test", "testing", "ci"} => in-memory store."""
    env = get_settings().app_env.strip().lower()
    return env in {"test", "testing", "ci"}


# =============================================================================
# Infraestructura
# =============================================================================


@lru_cache(maxsize=1)
def get_event_store() -> EventStore:
    """Event Store (in-memory en test; Postgres en runtime)."""
    if _is_test_env():
        return InMemoryEventStore()
    return PostgresEventStore()


@lru_cache(maxsize=1)
def get_redis() -> Redis | None:
    """Conexión Redis compartida, o None si REDIS_URL no está configurado."""
    settings = get_settings()
    if not settings.redis_url.strip():
        return None
    return Redis.from_url(
        settings.redis_url,
        socket_connect_timeout=2,
        socket_timeout=5,
        health_check_interval=30,
    )


def _queue_config() -> RQQueueConfig:
    settings = get_settings()
    return RQQueueConfig(
        queue_name=settings.outbox_queue_name,
        retry_max_attempts=settings.handler_queue_max_attempts,
        job_timeout_seconds=settings.handler_job_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_wakeup() -> OutboxWakeUp:
    """Wake-up bridge (RQ) o no-op si no hay Redis / está deshabilitado."""
    settings = get_settings()
    redis_conn = get_redis()
    if redis_conn is None or not settings.outbox_wakeup_enabled:
        return NoopWakeUp()
    return RQOutboxWakeUp(
        redis=redis_conn,
        config=_queue_config(),
        coalesce_seconds=settings.outbox_wakeup_coalesce_seconds,
    )


@lru_cache(maxsize=1)
def get_handler_queue() -> HandlerJobQueue | None:
    """Cola para handlers should_queue (None => corren inline)."""
    redis_conn = get_redis()
    if redis_conn is None:
        return None
    return RQHandlerJobQueue(redis=redis_conn, config=_queue_config())


# =============================================================================
# Registry / dispatcher / worker
# =============================================================================


@lru_cache(maxsize=1)
def get_registry() -> HandlerRegistry:
    """Registry del proceso (vacío hasta build_handler_registry())."""
    return HandlerRegistry()


def build_handler_registry() -> HandlerRegistry:
    """Boot: registra los handlers de dominio y congela (idempotente)."""
    registry = get_registry()
    if not registry.frozen:
        from .handlers import register_event_handlers

        register_event_handlers(registry)
    return registry


@lru_cache(maxsize=1)
def get_dispatcher() -> EventDispatcher:
    return EventDispatcher(build_handler_registry(), handler_queue=get_handler_queue())


@lru_cache(maxsize=1)
def get_outbox_worker() -> OutboxWorker:
    settings = get_settings()
    return OutboxWorker(
        get_event_store(),
        get_dispatcher(),
        batch_size=settings.outbox_batch_size,
        max_retries=settings.outbox_max_retries,
    )


@lru_cache(maxsize=1)
def get_publisher() -> EventPublisher:
    return EventPublisher(
        get_event_store(),
        wakeup=get_wakeup(),
        environment=get_settings().app_env,
    )


def reset_container() -> None:
    """Tests: descarta todos los singletons."""
    for factory in (
        get_event_store,
        get_redis,
        get_wakeup,
        get_handler_queue,
        get_registry,
        get_dispatcher,
        get_outbox_worker,
        get_publisher,
    ):
        factory.cache_clear()

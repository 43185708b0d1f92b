"""
Name: Outbox Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Provide defaults for the publisher, the worker and the wake-up bridge

Collaborators:
  - container.py: reads settings to build store, queue adapters and worker
  - worker/worker.py: reads poll interval, ports and pool sizes
  - crosscutting/logger.py: reads log_level / log_json

Constraints:
  - No business logic — pure configuration

Notes:
  - Uses pydantic-settings for env parsing and validation
  - Singleton via lru_cache
  - outbox_max_retries=0 means unbounded retries (no dead-letter ceiling)
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        database_url: PostgreSQL connection string
        app_env: Application environment (development/production/test)
        log_level: Root log level for the outbox logger (default: INFO)
        log_json: Emit JSON logs (default: True)
        redis_url: Redis connection string for wake-ups and queued handlers
        otel_enabled: Enable OpenTelemetry tracing (default: False)
        outbox_batch_size: Rows selected per worker run (default: 10)
        outbox_poll_interval_seconds: Fixed poll interval (default: 60)
        outbox_max_retries: Dead-letter ceiling, 0 = unbounded (default: 0)
        outbox_queue_name: RQ queue used by the worker (default: outbox)
        outbox_wakeup_enabled: Nudge the worker after simple publishes
        outbox_wakeup_coalesce_seconds: Window that collapses wake-up bursts
        handler_queue_max_attempts: RQ retries for queued handlers
        handler_job_timeout_seconds: RQ timeout for queued handlers
        worker_http_port: Port of the worker health/metrics server
        metrics_require_auth: Require X-API-Key for /metrics
        metrics_api_key: Key accepted by /metrics when auth is required
    """

    # Required (no defaults)
    database_url: str

    # Environment
    app_env: str = "development"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Redis (wake-up bridge + queued handlers)
    redis_url: str = ""

    # Observability
    otel_enabled: bool = False

    # Database - Connection Pool
    db_pool_min_size: int = 2
    db_pool_max_size: int = 10
    db_statement_timeout_ms: int = 30000  # 30 seconds

    # Outbox worker
    outbox_batch_size: int = 10
    outbox_poll_interval_seconds: float = 60.0
    outbox_max_retries: int = 0
    outbox_queue_name: str = "outbox"

    # Wake-up bridge
    outbox_wakeup_enabled: bool = True
    outbox_wakeup_coalesce_seconds: int = 1

    # Queued handlers
    handler_queue_max_attempts: int = 3
    handler_job_timeout_seconds: int = 300

    # Worker operations
    worker_http_port: int = 8001
    metrics_require_auth: bool = False
    metrics_api_key: str = ""

    @field_validator("outbox_batch_size")
    @classmethod
    def batch_size_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("outbox_batch_size must be greater than 0")
        return v

    @field_validator("outbox_poll_interval_seconds")
    @classmethod
    def poll_interval_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("outbox_poll_interval_seconds must be greater than 0")
        return v

    @field_validator("outbox_max_retries", "handler_queue_max_attempts")
    @classmethod
    def retries_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("retry settings must be >= 0")
        return v

    @field_validator("outbox_wakeup_coalesce_seconds")
    @classmethod
    def coalesce_window_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("outbox_wakeup_coalesce_seconds must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_security_requirements(self):
        if not self.is_production():
            return self

        if not self.metrics_require_auth:
            raise ValueError("METRICS_REQUIRE_AUTH must be true in production")
        if not self.metrics_api_key.strip():
            raise ValueError(
                "METRICS_API_KEY is required in production to protect /metrics"
            )
        return self

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def is_unbounded_retry(self) -> bool:
        """True when failing events are retried forever (no ceiling)."""
        return self.outbox_max_retries == 0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()

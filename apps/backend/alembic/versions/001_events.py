"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 001_events (Alembic Migration)

Responsibilities:
  - Crear la tabla `events` (outbox durable de eventos de dominio).
  - Índice (processed, created_at) para la selección oldest-first del worker.
  - FK organization_id -> organizations(id) ON DELETE SET NULL: borrar una
    organización no borra su historia de eventos.

Collaborators:
  - infrastructure/repositories/postgres/event_store.py (usa este esquema)

Policy:
  - `organizations` pertenece a la aplicación host. Si no existe (repo
    standalone / tests), se crea la versión mínima (id uuid PK).
  - Downgrade borra solo `events`.
============================================================
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_events"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS organizations (
            id uuid PRIMARY KEY,
            created_at timestamptz NOT NULL DEFAULT now()
        )
        """
    )

    op.create_table(
        "events",
        sa.Column("event_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column(
            "event_version",
            sa.Text(),
            nullable=False,
            server_default=sa.text("'1.0.0'"),
        ),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("actor_type", sa.Text(), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column(
            "payload",
            postgresql.JSON(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::json"),
        ),
        sa.Column(
            "metadata",
            postgresql.JSON(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::json"),
        ),
        sa.Column(
            "processed",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column(
            "retry_count",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("event_id", name="pk_events"),
        sa.ForeignKeyConstraint(
            ["organization_id"],
            ["organizations.id"],
            name="fk_events_organization_id__organizations",
            ondelete="SET NULL",
        ),
        sa.CheckConstraint(
            "actor_type IN ('user', 'system', 'webhook', 'cron', 'api')",
            name="ck_events_actor_type",
        ),
        sa.CheckConstraint("retry_count >= 0", name="ck_events_retry_count"),
    )

    op.create_index(
        "ix_events_processed_created_at", "events", ["processed", "created_at"]
    )
    op.create_index("ix_events_type", "events", ["type"])
    op.create_index("ix_events_actor_id", "events", ["actor_id"])
    op.create_index("ix_events_organization_id", "events", ["organization_id"])


def downgrade() -> None:
    op.drop_index("ix_events_organization_id", table_name="events")
    op.drop_index("ix_events_actor_id", table_name="events")
    op.drop_index("ix_events_type", table_name="events")
    op.drop_index("ix_events_processed_created_at", table_name="events")
    op.drop_table("events")

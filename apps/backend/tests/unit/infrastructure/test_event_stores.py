"""
Name: Event Store Tests (in-memory + Postgres SQL wiring)

Responsibilities:
  - InMemoryEventStore: transaction staging, ordering, timeline filters
  - PostgresEventStore: caller connection usage, parametrized queries,
    error translation (offline, mocked pool)
"""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from outbox.crosscutting.exceptions import DatabaseError
from outbox.domain.entities import ActorType, EventTimelineQuery
from outbox.infrastructure.repositories import PostgresEventStore

pytestmark = pytest.mark.unit


# ============================================================================
# InMemoryEventStore
# ============================================================================


def test_inserts_outside_transaction_are_visible(store, make_event):
    event = make_event()
    store.insert(event)

    stored = store.get_event(event.event_id)
    assert stored.created_at is not None
    assert stored.processed is False


def test_transaction_commits_only_on_clean_exit(store, make_event):
    event = make_event()

    with store.transaction() as tx:
        store.insert(event, conn=tx)
        assert store.get_event(event.event_id) is None

    assert store.get_event(event.event_id) is not None


def test_closed_transaction_rejects_inserts(store, make_event):
    with store.transaction() as tx:
        pass

    with pytest.raises(RuntimeError):
        store.insert(make_event(), conn=tx)


def test_duplicate_event_id_rejected(store, make_event):
    event = make_event()
    store.insert(event)

    with pytest.raises(ValueError):
        store.insert(event)


def test_mark_failed_on_missing_event_returns_zero(store):
    assert store.mark_failed(uuid4(), "x") == 0


def test_list_events_newest_first_with_filters(store, make_event):
    org = uuid4()
    webhook_events = [
        make_event("payment.succeeded", actor_type=ActorType.WEBHOOK, organization_id=org)
        for _ in range(3)
    ]
    other = make_event("user.created")
    for event in [*webhook_events, other]:
        store.insert(event)

    everything = store.list_events(EventTimelineQuery())
    assert [e.event_id for e in everything][0] == other.event_id

    page = store.list_events(
        EventTimelineQuery(
            organization_id=org,
            actor_type=ActorType.WEBHOOK,
            event_types=("payment.succeeded",),
            limit=2,
            offset=1,
        )
    )
    assert [e.event_id for e in page] == [
        webhook_events[1].event_id,
        webhook_events[0].event_id,
    ]


def test_clear_removes_everything(store, make_event):
    store.insert(make_event())
    store.clear()
    assert store.all_events() == []


# ============================================================================
# PostgresEventStore (offline)
# ============================================================================


def _pool_with(conn):
    pool = MagicMock()
    pool.connection.return_value.__enter__.return_value = conn
    return pool


def _row(event_id=None, **overrides):
    row = {
        "event_id": event_id or uuid4(),
        "type": "practice.created",
        "event_version": "1.0.0",
        "actor_id": uuid4(),
        "actor_type": "user",
        "organization_id": None,
        "payload": {"name": "Acme"},
        "metadata": None,
        "processed": False,
        "processed_at": None,
        "retry_count": 0,
        "last_error": None,
        "created_at": None,
    }
    row.update(overrides)
    return tuple(row.values())


def test_insert_uses_caller_connection_without_pool(make_event):
    pool = MagicMock()
    caller_conn = MagicMock()
    store = PostgresEventStore(pool)
    event = make_event()

    store.insert(event, conn=caller_conn)

    pool.connection.assert_not_called()
    caller_conn.commit.assert_not_called()
    sql, params = caller_conn.execute.call_args.args
    assert "INSERT INTO events" in sql
    assert params[0] == event.event_id
    assert params[4] == "user"


def test_insert_without_conn_uses_pool(make_event):
    conn = MagicMock()
    store = PostgresEventStore(_pool_with(conn))

    store.insert(make_event())

    conn.execute.assert_called_once()


def test_insert_error_becomes_database_error(make_event):
    caller_conn = MagicMock()
    caller_conn.execute.side_effect = RuntimeError("unique violation")
    store = PostgresEventStore(MagicMock())

    with pytest.raises(DatabaseError):
        store.insert(make_event(), conn=caller_conn)


def test_fetch_unprocessed_sql_and_hydration():
    conn = MagicMock()
    conn.execute.return_value.fetchall.return_value = [_row(), _row()]
    store = PostgresEventStore(_pool_with(conn))

    events = store.fetch_unprocessed(limit=10, max_retries=3)

    sql, params = conn.execute.call_args.args
    assert "processed = false" in sql
    assert "retry_count < %s" in sql
    assert "ORDER BY created_at ASC, event_id ASC" in sql
    assert params == (3, 10)
    assert len(events) == 2
    assert events[0].actor_type == ActorType.USER
    assert events[0].metadata == {}


def test_fetch_unprocessed_unbounded_has_no_retry_filter():
    conn = MagicMock()
    conn.execute.return_value.fetchall.return_value = []
    store = PostgresEventStore(_pool_with(conn))

    store.fetch_unprocessed(limit=5)

    sql, params = conn.execute.call_args.args
    where = sql.split("WHERE", 1)[1]
    assert "retry_count" not in where
    assert params == (5,)


def test_mark_failed_truncates_and_returns_retry_count():
    conn = MagicMock()
    conn.execute.return_value.fetchone.return_value = (4,)
    store = PostgresEventStore(_pool_with(conn))

    retry_count = store.mark_failed(uuid4(), "x" * 5000)

    _, params = conn.execute.call_args.args
    assert len(params[0]) == 2000
    assert retry_count == 4


def test_reset_for_replay_reports_missing_rows():
    conn = MagicMock()
    conn.execute.return_value.fetchone.return_value = None
    store = PostgresEventStore(_pool_with(conn))

    assert store.reset_for_replay(uuid4()) is False


def test_read_errors_become_database_error():
    conn = MagicMock()
    conn.execute.side_effect = RuntimeError("timeout")
    store = PostgresEventStore(_pool_with(conn))

    with pytest.raises(DatabaseError):
        store.get_event(uuid4())


def test_list_events_builds_filters():
    conn = MagicMock()
    conn.execute.return_value.fetchall.return_value = []
    store = PostgresEventStore(_pool_with(conn))

    store.list_events(
        EventTimelineQuery(
            actor_type=ActorType.CRON,
            event_types=("user.created",),
            limit=20,
            offset=40,
        )
    )

    sql, params = conn.execute.call_args.args
    assert "actor_type = %s" in sql
    assert "type = ANY(%s)" in sql
    assert "ORDER BY created_at DESC, event_id DESC" in sql
    assert params == ("cron", ["user.created"], 20, 40)

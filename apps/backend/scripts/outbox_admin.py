"""
Name: Outbox Admin Script

Responsibilities:
  - Replay one event (back to processed=false, retries cleared)
  - Run a single outbox batch on demand
  - Print the event timeline (newest first) for inspection

Usage:
  python scripts/outbox_admin.py replay <event_id>
  python scripts/outbox_admin.py run-once
  python scripts/outbox_admin.py timeline --type payment.failed --limit 20
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from uuid import UUID

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from outbox.application.schemas import parse_timeline_request  # noqa: E402
from outbox.container import (  # noqa: E402
    build_handler_registry,
    get_event_store,
    get_outbox_worker,
)
from outbox.crosscutting.config import get_settings  # noqa: E402
from outbox.crosscutting.exceptions import EventValidationError  # noqa: E402
from outbox.infrastructure.db.pool import close_pool, init_pool  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    argv = sys.argv[1:] if argv is None else argv
    if argv and argv[0] == "--":
        argv = argv[1:]

    parser = argparse.ArgumentParser(description="Outbox maintenance commands.")
    sub = parser.add_subparsers(dest="command", required=True)

    replay = sub.add_parser("replay", help="Mark an event as unprocessed again")
    replay.add_argument("event_id", type=UUID, help="Event UUID")

    sub.add_parser("run-once", help="Process one batch of pending events")

    timeline = sub.add_parser("timeline", help="List events, newest first")
    timeline.add_argument("--type", dest="event_types", action="append", default=[])
    timeline.add_argument("--actor-id")
    timeline.add_argument("--actor-type")
    timeline.add_argument("--organization-id")
    timeline.add_argument("--limit", type=int, default=50)
    timeline.add_argument("--offset", type=int, default=0)

    return parser.parse_args(argv)


def _timeline_filters(args: argparse.Namespace) -> dict:
    filters = {
        "event_types": args.event_types,
        "limit": args.limit,
        "offset": args.offset,
    }
    if args.actor_id:
        filters["actor_id"] = args.actor_id
    if args.actor_type:
        filters["actor_type"] = args.actor_type
    if args.organization_id:
        filters["organization_id"] = args.organization_id
    return filters


def run(args: argparse.Namespace) -> int:
    if args.command == "replay":
        found = get_outbox_worker().replay_event(args.event_id)
        print(json.dumps({"event_id": str(args.event_id), "replayed": found}))
        return 0 if found else 1

    if args.command == "run-once":
        build_handler_registry()
        result = get_outbox_worker().run_once()
        print(
            json.dumps(
                {
                    "selected": result.selected,
                    "processed": result.processed,
                    "failed": result.failed,
                }
            )
        )
        return 0

    try:
        query = parse_timeline_request(_timeline_filters(args))
    except EventValidationError as exc:
        raise SystemExit(json.dumps(exc.to_response().to_dict())) from exc

    for event in get_event_store().list_events(query):
        print(
            json.dumps(
                {
                    "event_id": str(event.event_id),
                    "type": event.type,
                    "actor_type": event.actor_type.value,
                    "processed": event.processed,
                    "retry_count": event.retry_count,
                    "last_error": event.last_error,
                    "created_at": event.created_at.isoformat()
                    if event.created_at
                    else None,
                },
                ensure_ascii=False,
            )
        )
    return 0


def main() -> None:
    args = _parse_args()
    settings = get_settings()
    init_pool(
        database_url=settings.database_url,
        min_size=1,
        max_size=2,
        application_name="outbox-admin",
    )
    try:
        code = run(args)
    finally:
        close_pool()
    raise SystemExit(code)


if __name__ == "__main__":
    main()

"""
Name: Outbox Admin Script Tests

Responsibilities:
  - Argument parsing for replay / run-once / timeline
  - Command dispatch against the test container (in-memory store)
"""

import importlib.util
import json
from pathlib import Path
from uuid import uuid4

import pytest

from outbox import container
from outbox.crosscutting.config import get_settings

pytestmark = pytest.mark.unit

SCRIPT_PATH = Path(__file__).resolve().parents[2] / "scripts" / "outbox_admin.py"


@pytest.fixture
def admin(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "")
    get_settings.cache_clear()
    spec = importlib.util.spec_from_file_location("outbox_admin", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_replay_unknown_event_exits_non_zero(admin, capsys):
    event_id = uuid4()

    code = admin.run(admin._parse_args(["replay", str(event_id)]))

    assert code == 1
    assert json.loads(capsys.readouterr().out) == {
        "event_id": str(event_id),
        "replayed": False,
    }


def test_run_once_and_timeline(admin, capsys):
    publisher = container.get_publisher()
    first = publisher.publish_simple_event("user.updated", "cron", None, {})
    second = publisher.publish_simple_event("payment.failed", "webhook", None, {})

    assert admin.run(admin._parse_args(["run-once"])) == 0
    assert json.loads(capsys.readouterr().out)["processed"] == 2

    admin.run(admin._parse_args(["timeline", "--limit", "10"]))
    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]

    assert [line["event_id"] for line in lines] == [str(second), str(first)]
    assert all(line["processed"] for line in lines)


def test_timeline_validation_error_exits(admin):
    with pytest.raises(SystemExit):
        admin.run(admin._parse_args(["timeline", "--limit", "500"]))

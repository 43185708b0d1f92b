"""
Name: Structured Logging Tests

Responsibilities:
  - JSON output enriched with the current event context
  - Secret redaction in extra fields
"""

import json
import logging

import pytest

from outbox.context import clear_context, set_event_context
from outbox.crosscutting.logger import JSONFormatter

pytestmark = pytest.mark.unit


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="outbox.application.outbox_worker",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Evento con handlers fallidos",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_log_includes_event_context():
    set_event_context(event_id="evt-1", event_type="payment.failed")
    try:
        line = JSONFormatter().format(_record(retry_count=2))
    finally:
        clear_context()

    payload = json.loads(line)
    assert payload["level"] == "WARNING"
    assert payload["event_id"] == "evt-1"
    assert payload["event_type"] == "payment.failed"
    assert payload["retry_count"] == 2


def test_sensitive_fields_are_redacted():
    line = JSONFormatter().format(
        _record(metrics_api_key="k", context={"token": "abc", "ok": 1})
    )

    payload = json.loads(line)
    assert payload["metrics_api_key"] == "***REDACTADO***"
    assert payload["context"] == {"token": "***REDACTADO***", "ok": 1}

"""Proceso worker del outbox (poller + jobs RQ + HTTP operativo)."""

"""Outbox transaccional de eventos de dominio."""

__version__ = "0.1.0"

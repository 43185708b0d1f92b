"""Infraestructura del outbox: Postgres, repositorios y colas."""

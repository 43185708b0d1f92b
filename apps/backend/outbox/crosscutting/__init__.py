"""Crosscutting: config, logging, errores, métricas y tracing."""

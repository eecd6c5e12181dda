"""Logging, context and tracing utilities."""

"""Core utilities: security and exceptions."""

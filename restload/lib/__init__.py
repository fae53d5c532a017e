"""Shared helpers: structured logging and JSON."""

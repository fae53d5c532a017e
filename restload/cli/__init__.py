"""CLI package public API shim."""

from .click_app import cli, main

__all__ = ["cli", "main"]

"""HTTP surface of the readiness & cache service."""

from .app import create_app

__all__ = ["create_app"]

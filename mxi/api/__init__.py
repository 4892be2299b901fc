"""HTTP API: purchase verification endpoint and health check."""

from mxi.api.server import create_app

__all__ = ["create_app"]

"""HTTP endpoints."""

from switchboard.infrastructure.http.health_server import HealthServer

__all__ = ["HealthServer"]

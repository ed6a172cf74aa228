"""Health check module."""

from rizhilu.health.router import router


__all__ = ["router"]

"""Route group exports."""

from . import health, routes

__all__ = ["routes", "health"]

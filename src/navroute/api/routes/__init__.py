"""Route group exports."""

from . import commands, health, routes

__all__ = ["routes", "commands", "health"]

"""Router package exports."""

from . import categories, config, health, overview, tasks, time_settings

__all__ = [
    "categories",
    "config",
    "health",
    "overview",
    "tasks",
    "time_settings",
]

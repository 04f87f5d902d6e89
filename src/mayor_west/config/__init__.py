"""
Mayor West configuration.

Environment-driven settings (MAYOR_WEST_* variables, optional .env file).
"""

from mayor_west.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]

"""
Pancakes Configuration

Framework settings and app route declarations.
"""

from .schemas import AppConfig, PancakesSettings, RouteDeclaration
from .settings import get_settings, load_settings_from_env

__all__ = [
    "AppConfig",
    "PancakesSettings",
    "RouteDeclaration",
    "get_settings",
    "load_settings_from_env",
]

"""Settings package exports."""

from .loader import (
    DEFAULT_CATEGORIES,
    AppConfig,
    DashboardSettings,
    HttpSettings,
    SanitySettings,
    build_config,
    load_config,
)

__all__ = [
    "DEFAULT_CATEGORIES",
    "AppConfig",
    "DashboardSettings",
    "HttpSettings",
    "SanitySettings",
    "build_config",
    "load_config",
]

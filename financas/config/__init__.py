"""Configuration package."""

from financas.config.settings import (
    DEFAULT_CATEGORIES,
    LedgerSettings,
    get_settings,
)

__all__ = [
    "DEFAULT_CATEGORIES",
    "LedgerSettings",
    "get_settings",
]

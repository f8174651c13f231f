"""Configuration module for the sync pipeline."""

from .constants import (
    # Directories
    CURSOR_FILE_NAME,
    DATA_DIR,
    # Remote API
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_USER_AGENT,
    PRODUCT_HUNT_API_ENDPOINT,
    # Batching
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_ITEMS,
)
from .settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "DATA_DIR",
    "CURSOR_FILE_NAME",
    "PRODUCT_HUNT_API_ENDPOINT",
    "DEFAULT_USER_AGENT",
    "DEFAULT_REQUEST_TIMEOUT",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_MAX_ITEMS",
]

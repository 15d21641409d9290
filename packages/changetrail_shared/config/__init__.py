"""Public API for shared changetrail configuration."""

from .loader import load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    AuditTrailSettings,
    ChangeTrailSettings,
    LoggingSettings,
    StoreSettings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "AuditTrailSettings",
    "ChangeTrailSettings",
    "LoggingSettings",
    "StoreSettings",
    "load_settings",
]

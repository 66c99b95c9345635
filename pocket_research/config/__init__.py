from __future__ import annotations

from .integrations import MISSING_URI_POLICIES, PocketConfig
from .settings import AppConfig, RuntimeConfig, Settings, load_config

__all__ = [
    "MISSING_URI_POLICIES",
    "AppConfig",
    "PocketConfig",
    "RuntimeConfig",
    "Settings",
    "load_config",
]

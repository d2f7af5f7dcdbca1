"""
Centralized configuration access for the probe.

Provides singleton access to the application configuration.
"""

from typing import Optional

from .env_loader import load_application_config
from .models import ApplicationConfig

# Global configuration instance
_config: Optional[ApplicationConfig] = None


def get_config() -> ApplicationConfig:
    """Get the global application configuration instance."""
    global _config
    if _config is None:
        _config = load_application_config()
    return _config


def set_config(config: Optional[ApplicationConfig]) -> None:
    """Set a custom configuration instance (useful for testing)."""
    global _config
    _config = config

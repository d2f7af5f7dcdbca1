"""
Configuration module for the probe.

Usage:

```python
from cbsim_probe.config import load_env_file, get_config
load_env_file()
config = get_config()
print(config.probe.url, config.probe.lifetime)

from cbsim_probe.config.logging_config import configure_logging
logger = configure_logging(config=config.logging)
```
"""

from .constants import DEFAULT_LIFETIME, DEFAULT_URL, LOGGER_NAME
from .env_loader import load_application_config, load_env_file
from .models import (
    ApplicationConfig,
    LoggingConfig,
    LogLevel,
    MockServerConfig,
    ProbeConfig,
)
from .settings import get_config, set_config

__all__ = [
    "DEFAULT_LIFETIME",
    "DEFAULT_URL",
    "LOGGER_NAME",
    "ApplicationConfig",
    "LoggingConfig",
    "LogLevel",
    "MockServerConfig",
    "ProbeConfig",
    "get_config",
    "load_application_config",
    "load_env_file",
    "set_config",
]

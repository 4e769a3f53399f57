"""
Crucible Core - Configuration, logging, platform detection and errors
"""

from crucible.core.config import CrucibleConfig, load_config
from crucible.core.logger import console, log, setup_logging
from crucible.core.paths import PathResolver
from crucible.core.exceptions import (
    CrucibleError,
    ConfigError,
    ValidationError,
    BuildError,
    UnsupportedPlatformError,
)

__all__ = [
    "CrucibleConfig",
    "load_config",
    "console",
    "log",
    "setup_logging",
    "PathResolver",
    "CrucibleError",
    "ConfigError",
    "ValidationError",
    "BuildError",
    "UnsupportedPlatformError",
]

"""
Crucible - Builds standalone native executables (Cargo, CMake) as part of
a project's build pipeline, copies them into priv/ and tracks their sources.
"""

__version__ = "0.1.0"

from crucible.accessors import NativeBinaries, lookup, register
from crucible.core.exceptions import (
    BuildError,
    ConfigError,
    CrucibleError,
    UnsupportedPlatformError,
    ValidationError,
)
from crucible.descriptor import NativeBuildDescriptor, Outcome
from crucible.orchestrator import Orchestrator
from crucible.resolver import ConfigResolver

__all__ = [
    "__version__",
    "NativeBinaries",
    "lookup",
    "register",
    "BuildError",
    "ConfigError",
    "CrucibleError",
    "UnsupportedPlatformError",
    "ValidationError",
    "NativeBuildDescriptor",
    "Outcome",
    "Orchestrator",
    "ConfigResolver",
]

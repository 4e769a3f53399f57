"""Crucible Core - Custom exception hierarchy."""

from typing import Optional, Sequence

from crucible.core.platform import describe, describe_constraints


class CrucibleError(Exception):
    """Base exception for all Crucible errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}\n{self.details}"
        return self.message


class ConfigError(CrucibleError):
    """Missing required field or invalid configuration file."""
    pass


class ValidationError(CrucibleError):
    """Malformed builder-specific option."""

    def __init__(self, message: str, option: Optional[str] = None):
        super().__init__(message)
        self.option = option


class BuildError(CrucibleError):
    """Native toolchain failure."""

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        errors: Optional[list[str]] = None,
        exit_code: Optional[int] = None,
        output: str = "",
    ):
        super().__init__(message)
        self.component = component
        self.errors = errors or []
        self.exit_code = exit_code
        self.output = output

    def __str__(self) -> str:
        result = self.message
        if self.component:
            result = f"[{self.component}] {result}"
        if self.errors:
            result += "\n" + "\n".join(f"  - {e}" for e in self.errors[:5])
        elif self.output:
            result += f"\n{self.output.rstrip()}"
        return result


class UnsupportedPlatformError(CrucibleError):
    """
    Raised when a binary path is requested on a platform that does not
    satisfy the declared `os`/`arch` constraints.

    The binary was never built, so there is no path to hand out.
    """

    def __init__(
        self,
        binary: str,
        required_os: Optional[Sequence[str]] = None,
        required_arch: Optional[Sequence[str]] = None,
    ):
        self.binary = binary
        self.required_os = list(required_os) if required_os is not None else None
        self.required_arch = list(required_arch) if required_arch is not None else None

        required = describe_constraints(self.required_os, self.required_arch)
        super().__init__(
            f"Binary '{binary}' is not available on this platform. "
            f"Required: {required}. Current: {describe()}."
        )

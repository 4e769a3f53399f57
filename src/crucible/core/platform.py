"""
Crucible Core - Platform detection and constraint matching
"""

import platform
from enum import Enum
from typing import Iterable, Optional


class OS(str, Enum):
    """Normalized operating system."""
    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"
    FREEBSD = "freebsd"
    UNKNOWN = "unknown"


class Arch(str, Enum):
    """Normalized CPU architecture."""
    X86_64 = "x86_64"
    ARM64 = "arm64"
    ARM = "arm"
    UNKNOWN = "unknown"


_SYSTEMS = {
    "linux": OS.LINUX,
    "darwin": OS.MACOS,
    "freebsd": OS.FREEBSD,
    "windows": OS.WINDOWS,
}


def current_os() -> OS:
    """
    Returns the running operating system.

    Anything outside the known set degrades to `OS.UNKNOWN`.
    """
    system = platform.system().lower()
    if system.startswith(("cygwin", "msys", "mingw")):
        return OS.WINDOWS
    return _SYSTEMS.get(system, OS.UNKNOWN)


def current_arch() -> Arch:
    """Returns the running CPU architecture, classified by substring."""
    machine = platform.machine().lower()

    if "x86_64" in machine or "amd64" in machine:
        return Arch.X86_64
    if "aarch64" in machine or "arm64" in machine:
        return Arch.ARM64
    if "arm" in machine:
        return Arch.ARM
    return Arch.UNKNOWN


def matches(
    os_list: Optional[Iterable[str]] = None,
    arch_list: Optional[Iterable[str]] = None,
) -> bool:
    """
    Checks the current platform against optional OS/arch allow-lists.

    `None` on an axis means "any". Both axes must be satisfied.
    """
    if os_list is None and arch_list is None:
        return True

    os_ok = os_list is None or _value(current_os()) in {_value(v) for v in os_list}
    arch_ok = arch_list is None or _value(current_arch()) in {_value(v) for v in arch_list}
    return os_ok and arch_ok


def describe() -> str:
    """Human-readable description of the current platform, e.g. `linux/x86_64`."""
    return f"{_value(current_os())}/{_value(current_arch())}"


def describe_constraints(
    os_list: Optional[Iterable[str]],
    arch_list: Optional[Iterable[str]],
) -> str:
    """Renders constraints as `<os,...>/<arch,...>`, with `any` for an absent axis."""
    os_str = ",".join(_value(v) for v in os_list) if os_list is not None else "any"
    arch_str = ",".join(_value(v) for v in arch_list) if arch_list is not None else "any"
    return f"{os_str}/{arch_str}"


def exe_extension() -> str:
    """Executable suffix for the current platform."""
    return ".exe" if current_os() is OS.WINDOWS else ""


def _value(item) -> str:
    return str(getattr(item, "value", item)).lower()

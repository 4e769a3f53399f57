"""
Crucible - Runtime accessors for built binaries

A `NativeBinaries` object is created from a finalized descriptor and
registered under an identifier. `crucible build` registers them as it
goes; in application code the first `lookup()` loads them from
crucible.toml:

    bins = crucible.accessors.lookup("Demo.Native")
    subprocess.run([bins.hello_path()])

On an unsupported platform every path accessor raises
UnsupportedPlatformError instead of returning a path.
`NativeBinaries.lookup()` returns the same outcome as a value for
callers that prefer not to catch.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from crucible.core.config import load_config
from crucible.core.exceptions import ConfigError, UnsupportedPlatformError
from crucible.core.platform import exe_extension
from crucible.descriptor import NativeBuildDescriptor
from crucible.orchestrator import Orchestrator


@dataclass(frozen=True)
class BinaryLookup:
    """Either a path or the reason there is none."""
    name: str
    path: Optional[Path] = None
    error: Optional[UnsupportedPlatformError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Path:
        if self.error is not None:
            raise self.error
        return self.path


def accessor_name(binary: str) -> str:
    """`my-tool` -> `my_tool_path`."""
    return f"{binary.replace('-', '_')}_path"


class NativeBinaries:
    """Path accessors for one descriptor's binaries."""

    def __init__(
        self,
        binaries: Sequence[str],
        priv_dir: Path,
        platform_supported: bool = True,
        required_os: Optional[Sequence[str]] = None,
        required_arch: Optional[Sequence[str]] = None,
        config: Optional[dict[str, Any]] = None,
    ):
        self.binaries = tuple(binaries)
        self.priv_dir = Path(priv_dir)
        self._platform_supported = platform_supported
        self._required_os = list(required_os) if required_os is not None else None
        self._required_arch = list(required_arch) if required_arch is not None else None
        self._config = config or {}
        self._accessors = {accessor_name(b): b for b in self.binaries}

    @classmethod
    def from_descriptor(cls, descriptor: NativeBuildDescriptor, priv_dir: Path) -> NativeBinaries:
        return cls(
            binaries=descriptor.binaries,
            priv_dir=priv_dir,
            platform_supported=descriptor.platform_supported,
            required_os=descriptor.os,
            required_arch=descriptor.arch,
            config=descriptor.to_dict(),
        )

    def lookup(self, name: str) -> BinaryLookup:
        if not self._platform_supported:
            error = UnsupportedPlatformError(name, self._required_os, self._required_arch)
            return BinaryLookup(name=name, error=error)
        return BinaryLookup(name=name, path=self.priv_dir / f"{name}{exe_extension()}")

    def bin_path(self, name: str) -> Path:
        """Absolute path of a binary copied into priv/."""
        return self.lookup(name).unwrap()

    def platform_supported(self) -> bool:
        return self._platform_supported

    def required_os(self) -> Optional[list[str]]:
        """Required OS list (None means any)."""
        return self._required_os

    def required_arch(self) -> Optional[list[str]]:
        """Required architecture list (None means any)."""
        return self._required_arch

    def config(self) -> dict[str, Any]:
        return dict(self._config)

    def __getattr__(self, attr: str) -> Callable[[], Path]:
        # Only reached for names not found normally
        accessors = self.__dict__.get("_accessors", {})
        if attr in accessors:
            binary = accessors[attr]
            return lambda: self.bin_path(binary)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {attr!r}")

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._accessors))

    def __repr__(self) -> str:
        return f"NativeBinaries(binaries={list(self.binaries)!r}, priv_dir={str(self.priv_dir)!r})"


# ============================================================================
# Registry
# ============================================================================

_REGISTRY: dict[str, NativeBinaries] = {}


def register(identifier: str, accessor: NativeBinaries) -> NativeBinaries:
    _REGISTRY[identifier] = accessor
    return accessor


def load(config_path: Optional[Path] = None) -> dict[str, NativeBinaries]:
    """
    Registers accessors for every declaration in crucible.toml.

    Only resolves options and checks the platform; nothing is built. The
    paths point at where `crucible build` copies the binaries.
    """
    config = load_config(config_path)
    orchestrator = Orchestrator(config.paths())

    for decl in config.natives:
        descriptor = orchestrator.resolve(decl.app, config.env_options(decl.name), decl.options)
        register(decl.name, NativeBinaries.from_descriptor(descriptor, orchestrator.paths.priv_dir(decl.app)))
    return registered()


def lookup(identifier: str) -> NativeBinaries:
    """
    Accessor registered under `identifier`.

    An empty registry is filled from crucible.toml on first use.
    """
    if not _REGISTRY:
        load()
    try:
        return _REGISTRY[identifier]
    except KeyError:
        raise ConfigError(f"No native binaries registered as '{identifier}'")


def registered() -> dict[str, NativeBinaries]:
    return dict(_REGISTRY)


def clear() -> None:
    _REGISTRY.clear()

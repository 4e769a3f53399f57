"""
Crucible - Native build descriptor
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class Outcome(str, Enum):
    """Terminal state reached by an orchestration run."""
    BUILT = "built"
    SKIPPED_PLATFORM = "skipped_platform"
    SKIPPED_NO_SOURCE = "skipped_no_source"


@dataclass(frozen=True)
class NativeBuildDescriptor:
    """
    Resolved configuration for one native build unit.

    Frozen: every pipeline stage returns an updated copy via `evolve`.
    """
    app: Optional[str] = None
    builder: Any = None
    source_path: Optional[Path] = None
    binaries: tuple[str, ...] = ()
    profile: Optional[str] = None
    env: tuple[tuple[str, str], ...] = ()
    builder_opts: dict[str, Any] = field(default_factory=dict)
    os: Optional[tuple[str, ...]] = None
    arch: Optional[tuple[str, ...]] = None
    skip_compilation: bool = False
    platform_supported: bool = True
    external_resources: tuple[Path, ...] = ()
    outcome: Optional[Outcome] = None

    def evolve(self, **changes: Any) -> NativeBuildDescriptor:
        return replace(self, **changes)

    @property
    def builder_name(self) -> str:
        if isinstance(self.builder, str):
            return self.builder
        kind = self.builder if isinstance(self.builder, type) else type(self.builder)
        return f"{kind.__module__}:{kind.__qualname__}"

    def builder_options(self, **extra: Any) -> dict[str, Any]:
        """Builder options with the orchestrator-supplied keys injected."""
        return {
            **self.builder_opts,
            "env": dict(self.env),
            "app": self.app,
            "binaries": list(self.binaries),
            **extra,
        }

    def to_dict(self) -> dict[str, Any]:
        """Plain snapshot for display and serialization."""
        return {
            "app": self.app,
            "builder": self.builder_name,
            "source_path": str(self.source_path) if self.source_path else None,
            "binaries": list(self.binaries),
            "profile": self.profile,
            "env": dict(self.env),
            "builder_opts": dict(self.builder_opts),
            "os": list(self.os) if self.os is not None else None,
            "arch": list(self.arch) if self.arch is not None else None,
            "platform_supported": self.platform_supported,
        }

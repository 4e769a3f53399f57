"""
Crucible - Descriptor resolution

Layers environment-level defaults and explicit options into one
NativeBuildDescriptor, then validates and fills in defaults:

    merge(env) -> merge(opts) -> validate -> defaults -> profile
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable, Optional

from crucible.build.registry import get_builder
from crucible.core.exceptions import ConfigError
from crucible.core.logger import log
from crucible.core.paths import current_env
from crucible.descriptor import NativeBuildDescriptor

PRODUCTION_ENVS = ("prod", "production")


def _str_list(value: Any) -> Optional[tuple[str, ...]]:
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    return None


def _constraint(value: Any) -> Optional[tuple[str, ...]]:
    if isinstance(value, (list, tuple)):
        return tuple(str(getattr(v, "value", v)).lower() for v in value)
    return None


def _env(value: Any) -> Optional[tuple[tuple[str, str], ...]]:
    if isinstance(value, Mapping):
        return tuple((str(k), str(v)) for k, v in value.items())
    if isinstance(value, (list, tuple)) and all(
        isinstance(p, (list, tuple)) and len(p) == 2 for p in value
    ):
        return tuple((str(k), str(v)) for k, v in value)
    return None


def _builder(value: Any) -> Any:
    if value is None or isinstance(value, bool):
        return None
    return value


# option key -> (descriptor field, coercion returning None when the type is wrong)
MERGERS: dict[str, tuple[str, Callable[[Any], Any]]] = {
    "app": ("app", lambda v: v if isinstance(v, str) and v else None),
    "builder": ("builder", _builder),
    "source_path": ("source_path", lambda v: Path(v) if isinstance(v, (str, Path)) else None),
    "binaries": ("binaries", _str_list),
    "profile": ("profile", lambda v: v if isinstance(v, str) else None),
    "env": ("env", _env),
    "skip_compilation": ("skip_compilation", lambda v: v if isinstance(v, bool) else None),
    "builder_opts": ("builder_opts", lambda v: dict(v) if isinstance(v, Mapping) else None),
    "os": ("os", _constraint),
    "arch": ("arch", _constraint),
}


class ConfigResolver:
    """Turns raw option tables into a validated, defaulted descriptor."""

    def __init__(self, build_env: Optional[str] = None):
        self.build_env = build_env or current_env()

    @property
    def production(self) -> bool:
        return self.build_env in PRODUCTION_ENVS

    def resolve(
        self,
        app: str,
        env_opts: Optional[Mapping[str, Any]],
        opts: Mapping[str, Any],
    ) -> NativeBuildDescriptor:
        """Full resolution; raises ConfigError on a missing required field."""
        descriptor = self.merge(NativeBuildDescriptor(), env_opts or {})
        descriptor = self.merge(descriptor, {**opts, "app": app})
        descriptor = self.validate(descriptor)
        descriptor = self.resolve_defaults(descriptor)
        return self.resolve_profile(descriptor)

    def merge(self, descriptor: NativeBuildDescriptor, options: Mapping[str, Any]) -> NativeBuildDescriptor:
        """
        Merges options field by field, later keys win.

        Unknown keys and wrongly typed values are ignored with a warning.
        """
        changes: dict[str, Any] = {}
        for key, value in options.items():
            merger = MERGERS.get(key)
            if merger is None:
                log.warning(f"Ignoring unknown option '{key}'")
                continue

            field_name, coerce = merger
            coerced = coerce(value)
            if coerced is None:
                log.warning(f"Ignoring option '{key}': unexpected value {value!r}")
                continue
            changes[field_name] = coerced

        return descriptor.evolve(**changes) if changes else descriptor

    def validate(self, descriptor: NativeBuildDescriptor) -> NativeBuildDescriptor:
        if not descriptor.app:
            raise ConfigError("Crucible requires 'app'")
        if descriptor.builder is None:
            raise ConfigError("Crucible requires the 'builder' option")
        if not descriptor.binaries:
            raise ConfigError("Crucible requires the 'binaries' option with at least one binary")
        return descriptor

    def resolve_defaults(self, descriptor: NativeBuildDescriptor) -> NativeBuildDescriptor:
        if descriptor.source_path is not None:
            return descriptor
        builder = get_builder(descriptor.builder)
        return descriptor.evolve(source_path=Path(builder.default_source_path()))

    def resolve_profile(self, descriptor: NativeBuildDescriptor) -> NativeBuildDescriptor:
        if descriptor.profile is not None:
            return descriptor
        return descriptor.evolve(profile="release" if self.production else "debug")

"""
Crucible - Build orchestration pipeline

One run walks a descriptor through, strictly in order:

    resolve config -> check platform -> validate builder opts
    -> locate source -> build -> binary paths -> copy -> discover

An unsupported platform or a missing source directory ends the run early
with an informational message. Configuration, validation and build
errors propagate and abort the run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional

from crucible.build.artifacts import copy_binaries
from crucible.build.base import Builder
from crucible.build.registry import get_builder
from crucible.core import platform
from crucible.core.logger import log
from crucible.core.paths import PathResolver
from crucible.descriptor import NativeBuildDescriptor, Outcome
from crucible.resolver import ConfigResolver


class Orchestrator:
    """Builds native binaries for a host project and tracks their sources."""

    def __init__(
        self,
        paths: Optional[PathResolver] = None,
        resolver: Optional[ConfigResolver] = None,
    ):
        self.paths = paths or PathResolver.from_cwd()
        self.resolver = resolver or ConfigResolver(self.paths.env)

    def compile(
        self,
        app: str,
        env_opts: Optional[Mapping[str, Any]],
        opts: Mapping[str, Any],
    ) -> NativeBuildDescriptor:
        """Runs the whole pipeline and returns the finalized descriptor."""
        descriptor = self.resolver.resolve(app, env_opts, opts)
        descriptor = self.check_platform(descriptor)

        if not descriptor.platform_supported:
            return self._skip_platform(descriptor)

        builder = get_builder(descriptor.builder)
        builder.validate_opts(descriptor.builder_opts)

        source_path = self.paths.resolve_source(descriptor.source_path)
        descriptor = descriptor.evolve(source_path=source_path)
        if not source_path.is_dir():
            log.info(f"No {source_path} directory found, skipping native build")
            return descriptor.evolve(external_resources=(), outcome=Outcome.SKIPPED_NO_SOURCE)

        return self._build(descriptor, builder)

    def check_platform(self, descriptor: NativeBuildDescriptor) -> NativeBuildDescriptor:
        supported = platform.matches(descriptor.os, descriptor.arch)
        return descriptor.evolve(platform_supported=supported)

    def resolve(
        self,
        app: str,
        env_opts: Optional[Mapping[str, Any]],
        opts: Mapping[str, Any],
    ) -> NativeBuildDescriptor:
        """Resolution and platform check only, with an absolute source path; nothing is built."""
        descriptor = self.check_platform(self.resolver.resolve(app, env_opts, opts))
        return descriptor.evolve(source_path=self.paths.resolve_source(descriptor.source_path))

    def builder_options(self, descriptor: NativeBuildDescriptor, **extra: Any) -> dict[str, Any]:
        return descriptor.builder_options(
            build_path=str(self.paths.build_path),
            project_root=str(self.paths.project_root),
            **extra,
        )

    # ========================================================================
    # Stages
    # ========================================================================

    def _skip_platform(self, descriptor: NativeBuildDescriptor) -> NativeBuildDescriptor:
        current = platform.describe()
        required = platform.describe_constraints(descriptor.os, descriptor.arch)
        log.info(
            f"Skipping {descriptor.app} native build "
            f"(unsupported platform: {current}, requires: {required})"
        )
        return descriptor.evolve(external_resources=(), outcome=Outcome.SKIPPED_PLATFORM)

    def _build(self, descriptor: NativeBuildDescriptor, builder: Builder) -> NativeBuildDescriptor:
        source_path: Path = descriptor.source_path
        opts = self.builder_options(descriptor)

        if descriptor.skip_compilation:
            log.step(f"Compilation skipped for {descriptor.app}")
        else:
            builder.build(source_path, descriptor.profile, opts)

        binary_paths = builder.binary_paths(source_path, descriptor.binaries, descriptor.profile, opts)
        copied = copy_binaries(binary_paths, self.paths.ensure_priv_dir(descriptor.app))
        discovered = builder.discover_resources(source_path)

        log.debug(f"{descriptor.app}: tracking {len(copied) + len(discovered)} resources")
        return descriptor.evolve(
            external_resources=tuple(copied) + tuple(Path(p) for p in discovered),
            outcome=Outcome.BUILT,
        )

from pathlib import Path

import pytest

from crucible.core.exceptions import BuildError, ConfigError, ValidationError
from crucible.core.paths import PathResolver
from crucible.descriptor import Outcome
from crucible.orchestrator import Orchestrator
from tests.conftest import RecordingBuilder


def _source(paths: PathResolver, name: str = "native_src") -> Path:
    source = paths.project_root / name
    source.mkdir(parents=True)
    (source / "main.txt").write_text("source\n", encoding="utf-8")
    return source


def test_compile_builds_copies_and_tracks_resources(paths: PathResolver) -> None:
    source = _source(paths)
    builder = RecordingBuilder()

    descriptor = Orchestrator(paths).compile(
        "demo", {}, {"builder": builder, "binaries": ["hello", "a-b"]}
    )

    assert descriptor.outcome is Outcome.BUILT
    assert descriptor.platform_supported is True
    assert descriptor.source_path == source

    (built_source, profile, opts) = builder.built[0]
    assert built_source == source
    assert profile == "debug"
    assert opts["app"] == "demo"
    assert opts["binaries"] == ["hello", "a-b"]
    assert opts["build_path"] == str(paths.build_path)
    assert opts["project_root"] == str(paths.project_root)

    priv = paths.priv_dir("demo")
    assert (priv / "hello").read_text(encoding="utf-8").endswith("echo hello\n")
    assert (priv / "a-b").exists()
    assert descriptor.external_resources == (priv / "hello", priv / "a-b", source / "main.txt")


def test_copied_binaries_are_executable(paths: PathResolver) -> None:
    _source(paths)
    Orchestrator(paths).compile("demo", {}, {"builder": RecordingBuilder(), "binaries": ["hello"]})

    mode = (paths.priv_dir("demo") / "hello").stat().st_mode
    assert mode & 0o111


def test_builder_opts_are_validated_before_build(paths: PathResolver) -> None:
    _source(paths)
    builder = RecordingBuilder()

    Orchestrator(paths).compile(
        "demo", {}, {"builder": builder, "binaries": ["x"], "builder_opts": {"flavour": "spicy"}}
    )

    assert builder.validated == [{"flavour": "spicy"}]


def test_skip_compilation_still_copies_existing_binaries(paths: PathResolver) -> None:
    source = _source(paths)
    (source / "out").mkdir()
    (source / "out" / "prebuilt").write_text("bin", encoding="utf-8")
    builder = RecordingBuilder()

    descriptor = Orchestrator(paths).compile(
        "demo", {}, {"builder": builder, "binaries": ["prebuilt"], "skip_compilation": True}
    )

    assert builder.built == []
    assert (paths.priv_dir("demo") / "prebuilt").read_text(encoding="utf-8") == "bin"
    assert descriptor.outcome is Outcome.BUILT


def test_missing_binary_is_not_a_pipeline_failure(paths: PathResolver) -> None:
    _source(paths)

    descriptor = Orchestrator(paths).compile(
        "demo", {}, {"builder": RecordingBuilder(), "binaries": ["ghost"], "skip_compilation": True}
    )

    assert descriptor.outcome is Outcome.BUILT
    assert not (paths.priv_dir("demo") / "ghost").exists()
    assert paths.priv_dir("demo") / "ghost" in descriptor.external_resources


def test_unsupported_platform_skips_everything(paths: PathResolver, on_platform) -> None:
    on_platform("Linux", "x86_64")
    builder = RecordingBuilder()

    descriptor = Orchestrator(paths).compile(
        "demo",
        {},
        {"builder": builder, "binaries": ["fake"], "source_path": "/nonexistent/path", "os": ["windows"]},
    )

    assert descriptor.platform_supported is False
    assert descriptor.external_resources == ()
    assert descriptor.outcome is Outcome.SKIPPED_PLATFORM
    assert descriptor.os == ("windows",)
    assert builder.built == []
    assert builder.validated == []


def test_unsupported_arch_skips(paths: PathResolver, on_platform) -> None:
    on_platform("Linux", "aarch64")

    descriptor = Orchestrator(paths).compile(
        "demo", {}, {"builder": "cargo", "binaries": ["fake"], "arch": ["x86_64"]}
    )

    assert descriptor.platform_supported is False
    assert descriptor.arch == ("x86_64",)


def test_matching_constraints_with_missing_source(paths: PathResolver, on_platform) -> None:
    on_platform("Linux", "x86_64")

    descriptor = Orchestrator(paths).compile(
        "demo",
        {},
        {
            "builder": "cargo",
            "binaries": ["fake"],
            "source_path": "/nonexistent/path",
            "os": ["linux"],
            "arch": ["x86_64"],
            "skip_compilation": True,
        },
    )

    assert descriptor.platform_supported is True
    assert descriptor.outcome is Outcome.SKIPPED_NO_SOURCE
    assert descriptor.external_resources == ()
    assert descriptor.source_path == Path("/nonexistent/path")


def test_relative_source_resolves_against_project_root(paths: PathResolver) -> None:
    descriptor = Orchestrator(paths).compile("demo", {}, {"builder": "cargo", "binaries": ["x"]})

    assert descriptor.source_path == paths.project_root / "native"
    assert descriptor.outcome is Outcome.SKIPPED_NO_SOURCE


def test_invalid_builder_opts_abort_before_build(paths: PathResolver, fake_runner) -> None:
    (paths.project_root / "native").mkdir(parents=True)

    with pytest.raises(ValidationError, match="target"):
        Orchestrator(paths).compile(
            "demo", {}, {"builder": "cargo", "binaries": ["x"], "builder_opts": {"target": 42}}
        )

    assert fake_runner.calls == []


def test_build_failure_propagates(paths: PathResolver, fake_runner) -> None:
    (paths.project_root / "native").mkdir(parents=True)
    fake_runner.queue(101, "error[E0425]: cannot find value `x`\n  --> src/main.rs:2:5\n")

    with pytest.raises(BuildError) as excinfo:
        Orchestrator(paths).compile("demo", {}, {"builder": "cargo", "binaries": ["x"]})

    assert excinfo.value.exit_code == 101
    assert excinfo.value.errors == ["ERROR: src/main.rs:2:5 - [E0425] cannot find value `x`"]
    assert not paths.priv_dir("demo").exists()


def test_config_error_aborts_before_anything_runs(paths: PathResolver, fake_runner) -> None:
    with pytest.raises(ConfigError):
        Orchestrator(paths).compile("demo", {}, {"builder": "cargo"})
    assert fake_runner.calls == []


def test_resolve_does_not_build(paths: PathResolver) -> None:
    builder = RecordingBuilder()
    descriptor = Orchestrator(paths).resolve("demo", {"profile": "release"}, {"builder": builder, "binaries": ["x"]})

    assert descriptor.profile == "release"
    assert descriptor.source_path == paths.project_root / "native_src"
    assert descriptor.outcome is None
    assert builder.built == []

"""Shared test fixtures."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Callable

import pytest

from crucible import accessors
from crucible.build.runner import CommandResult
from crucible.core.paths import ENV_VAR, PathResolver

FIXTURES = Path(__file__).parent / "fixtures"


class FakeRunner:
    """Stands in for run_command: records calls, replays queued exit codes."""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.responses: list[tuple[int, str]] = []

    def queue(self, exit_code: int, output: str = "") -> FakeRunner:
        self.responses.append((exit_code, output))
        return self

    def __call__(self, cmd, args, cwd=None, env=None) -> CommandResult:
        self.calls.append({"cmd": cmd, "args": list(args), "cwd": cwd, "env": dict(env or {})})
        exit_code, output = self.responses.pop(0) if self.responses else (0, "")
        return CommandResult(command=[cmd, *args], exit_code=exit_code, output=output)


class RecordingBuilder:
    """Minimal custom builder that writes fake binaries instead of compiling."""

    def __init__(self) -> None:
        self.built: list[tuple[Path, str, dict]] = []
        self.validated: list[dict] = []

    def default_source_path(self) -> str:
        return "native_src"

    def validate_opts(self, opts) -> None:
        self.validated.append(dict(opts))

    def build(self, source_path, profile, opts) -> None:
        self.built.append((Path(source_path), profile, dict(opts)))
        out = Path(source_path) / "out"
        out.mkdir(exist_ok=True)
        for name in opts["binaries"]:
            (out / name).write_text(f"#!/bin/sh\necho {name}\n", encoding="utf-8")

    def binary_paths(self, source_path, binaries, profile, opts):
        return {name: Path(source_path) / "out" / name for name in binaries}

    def discover_resources(self, source_path):
        return sorted(Path(source_path).glob("*.txt"))


@pytest.fixture(autouse=True)
def _isolated(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv(ENV_VAR, raising=False)
    accessors.clear()
    yield
    accessors.clear()


@pytest.fixture
def paths(tmp_path: Path) -> PathResolver:
    return PathResolver(tmp_path / "project", env="test")


@pytest.fixture
def fake_runner(monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    runner = FakeRunner()
    monkeypatch.setattr("crucible.build.cargo.run_command", runner)
    monkeypatch.setattr("crucible.build.cmake.run_command", runner)
    return runner


@pytest.fixture
def fixture_copy(tmp_path: Path) -> Callable[[str], Path]:
    """Copies a fixture project into tmp_path for isolated builds."""

    def _copy(name: str) -> Path:
        dest = tmp_path / "fixtures" / name
        shutil.copytree(FIXTURES / name, dest)
        return dest

    return _copy


@pytest.fixture
def on_platform(monkeypatch: pytest.MonkeyPatch) -> Callable[[str, str], None]:
    """Pins platform.system()/platform.machine() to the given raw values."""

    def _pin(system: str, machine: str) -> None:
        monkeypatch.setattr("platform.system", lambda: system)
        monkeypatch.setattr("platform.machine", lambda: machine)

    return _pin

"""Typed interfaces for native toolchain builders."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from crucible.core.exceptions import ValidationError
from crucible.core.paths import PathResolver

BuilderOpts = Mapping[str, Any]


class TestStatus(str, Enum):
    __test__ = False

    OK = "ok"
    ERROR = "error"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class TestResult:
    """Outcome of a builder's native test run."""
    __test__ = False

    status: TestStatus
    exit_code: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.status is TestStatus.OK

    @classmethod
    def skipped(cls) -> TestResult:
        return cls(status=TestStatus.SKIPPED, exit_code=0, output="")

    @classmethod
    def from_exit(cls, exit_code: int, output: str) -> TestResult:
        status = TestStatus.OK if exit_code == 0 else TestStatus.ERROR
        return cls(status=status, exit_code=exit_code, output=output)


@runtime_checkable
class Builder(Protocol):
    def default_source_path(self) -> str:
        """Conventional source directory, relative to the project root."""

    def validate_opts(self, opts: BuilderOpts) -> None:
        """Raise ValidationError for malformed builder options."""

    def build(self, source_path: Path, profile: str, opts: BuilderOpts) -> None:
        """Run the toolchain; raise BuildError on a non-zero exit."""

    def binary_paths(
        self,
        source_path: Path,
        binaries: Sequence[str],
        profile: str,
        opts: BuilderOpts,
    ) -> dict[str, Path]:
        """Where each binary is expected after a build."""

    def discover_resources(self, source_path: Path) -> list[Path]:
        """Files whose modification should trigger a rebuild."""


@runtime_checkable
class TestableBuilder(Builder, Protocol):
    def supports_test(self) -> bool: ...

    def test(self, source_path: Path, opts: BuilderOpts) -> TestResult: ...


def supports_test(builder: object) -> bool:
    """True when the builder implements both halves of the test capability."""
    probe = getattr(builder, "supports_test", None)
    if not callable(probe) or not callable(getattr(builder, "test", None)):
        return False
    return bool(probe())


# ============================================================================
# Option helpers shared by the built-in builders
# ============================================================================

def native_dir(opts: BuilderOpts) -> Path:
    """`<build_path>/native/<app>` for the app named in the options."""
    app = opts.get("app")
    if not app:
        raise ValidationError("Builder options are missing 'app'", "app")
    build_path = opts.get("build_path") or PathResolver.from_cwd().build_path
    return PathResolver.native_dir(build_path, app)


def option_path(opts: BuilderOpts, key: str) -> Path | None:
    """
    Directory option as an absolute path.

    Relative values are taken from `project_root` (the cwd when unset),
    never from the toolchain's working directory.
    """
    value = opts.get(key)
    if not value:
        return None
    path = Path(value)
    if path.is_absolute():
        return path
    root = opts.get("project_root") or PathResolver.from_cwd().project_root
    return Path(root).resolve() / path


def tool_bin(value: Any, default: str) -> str:
    """Resolves a `"system"` / `{"bin": path}` tool option to an executable."""
    if value is None or value == "system":
        return default
    if isinstance(value, Mapping):
        return str(value["bin"])
    # ("bin", path) pairs
    return str(value[1])


def check_tool(name: str, value: Any) -> None:
    if value is None or value == "system":
        return
    if isinstance(value, Mapping) and set(value) == {"bin"} and isinstance(value["bin"], str):
        return
    if isinstance(value, (tuple, list)) and len(value) == 2 and value[0] == "bin" and isinstance(value[1], str):
        return
    raise ValidationError(
        f"Invalid '{name}' option: {value!r}. Expected \"system\" or {{bin = \"/path\"}}",
        name,
    )


def check_optional_str(name: str, value: Any) -> None:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"Invalid '{name}' option: {value!r}. Expected a string", name)


def check_str_list(name: str, value: Any) -> None:
    if value is None:
        return
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"Invalid '{name}' option: {value!r}. Expected a list of strings", name)


def env_pairs(opts: BuilderOpts) -> dict[str, str]:
    """Caller-supplied environment overrides as a plain dict."""
    env = opts.get("env") or ()
    if isinstance(env, Mapping):
        return {str(k): str(v) for k, v in env.items()}
    return {str(k): str(v) for k, v in env}

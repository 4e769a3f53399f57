"""
Crucible Build - Cargo (Rust) builder

Builder options:

- `cargo`: `"system"` (default) or `{"bin": "/path/to/cargo"}`
- `target`: Rust target triple for cross-compilation
- `target_dir`: custom Cargo target directory, relative to the project root
  (default: `<build_path>/native/<app>/target`)
- `test_args`: extra arguments appended to `cargo test`
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from crucible.build.base import (
    BuilderOpts,
    TestResult,
    check_optional_str,
    check_str_list,
    check_tool,
    env_pairs,
    native_dir,
    option_path,
    tool_bin,
)
from crucible.build.runner import run_command
from crucible.core.exceptions import BuildError
from crucible.core.logger import log
from crucible.core.platform import exe_extension

TARGET_DIR_ENV = "CARGO_TARGET_DIR"


@dataclass
class CargoError:
    """Cargo compiler diagnostic."""
    level: str  # error, warning
    message: str
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    code: Optional[str] = None  # E0001, etc.

    def __str__(self) -> str:
        location = ""
        if self.file:
            location = f"{self.file}"
            if self.line:
                location += f":{self.line}"
                if self.column:
                    location += f":{self.column}"
            location += " - "

        code = f"[{self.code}] " if self.code else ""
        return f"{self.level.upper()}: {location}{code}{self.message}"


class CargoBuilder:
    """Cargo wrapper with error parsing."""

    ERROR_PATTERN = re.compile(
        r"^(?P<level>error|warning)(?:\[(?P<code>E\d+)\])?: (?P<message>.+)$"
    )
    LOCATION_PATTERN = re.compile(
        r"^\s*--> (?P<file>[^:]+):(?P<line>\d+):(?P<column>\d+)$"
    )

    def default_source_path(self) -> str:
        return "native"

    def validate_opts(self, opts: BuilderOpts) -> None:
        check_tool("cargo", opts.get("cargo"))
        check_optional_str("target", opts.get("target"))
        check_optional_str("target_dir", opts.get("target_dir"))
        check_str_list("test_args", opts.get("test_args"))

    # ========================================================================
    # Build
    # ========================================================================

    def build(self, source_path: Path, profile: str, opts: BuilderOpts) -> None:
        """Runs `cargo build`; raises BuildError on failure."""
        component = str(opts.get("app", "cargo"))
        target = opts.get("target")

        args = ["build"]
        if profile == "release":
            args.append("--release")
        if target:
            args.extend(["--target", target])

        cmd = tool_bin(opts.get("cargo"), "cargo")
        log.info(f"🔨 Building {component} with cargo ({profile})...")

        try:
            result = run_command(cmd, args, cwd=source_path, env=self._env(opts))
        except FileNotFoundError:
            raise BuildError(self._spawn_error(cmd, source_path), component)

        if not result.success:
            errors, warnings = self._parse_output(result.output)
            if log.verbose:
                for warning in warnings:
                    log.warning(str(warning))
            log.error(f"{component} failed")
            raise BuildError(
                f"{result.command_line} failed with status {result.exit_code}",
                component,
                errors=[str(e) for e in errors],
                exit_code=result.exit_code,
                output=result.output,
            )

        if log.verbose and result.output:
            log.output(result.output)
        log.success(f"{component} built")

    def binary_paths(
        self,
        source_path: Path,
        binaries: Sequence[str],
        profile: str,
        opts: BuilderOpts,
    ) -> dict[str, Path]:
        bin_dir = self.target_dir(opts)
        target = opts.get("target")
        if target:
            bin_dir = bin_dir / target
        bin_dir = bin_dir / ("release" if profile == "release" else "debug")

        extension = exe_extension()
        return {name: bin_dir / f"{name}{extension}" for name in binaries}

    def discover_resources(self, source_path: Path) -> list[Path]:
        """Manifests, lock file and .rs sources, excluding target/."""
        source_path = Path(source_path)
        resources = [
            p for p in (source_path / "Cargo.toml", source_path / "Cargo.lock") if p.exists()
        ]

        for pattern in ("**/Cargo.toml", "**/*.rs"):
            for path in sorted(source_path.glob(pattern)):
                if "target" in path.relative_to(source_path).parts:
                    continue
                if path not in resources:
                    resources.append(path)

        return resources

    # ========================================================================
    # Test
    # ========================================================================

    def supports_test(self) -> bool:
        return True

    def test(self, source_path: Path, opts: BuilderOpts) -> TestResult:
        """Runs `cargo test`; a failing run is data, not an exception."""
        target = opts.get("target")

        args = ["test"]
        if target:
            args.extend(["--target", target])
        args.extend(opts.get("test_args") or [])

        cmd = tool_bin(opts.get("cargo"), "cargo")
        try:
            result = run_command(cmd, args, cwd=source_path, env=self._env(opts))
        except FileNotFoundError:
            return TestResult.from_exit(127, self._spawn_error(cmd, source_path))

        return TestResult.from_exit(result.exit_code, result.output)

    # ========================================================================
    # Helpers
    # ========================================================================

    def target_dir(self, opts: BuilderOpts) -> Path:
        """Explicit `target_dir` (relative to the project root), else `<native dir>/target`."""
        return option_path(opts, "target_dir") or native_dir(opts) / "target"

    @staticmethod
    def _spawn_error(cmd: str, source_path: Path) -> str:
        # subprocess raises FileNotFoundError for a missing cwd as well
        if not Path(source_path).is_dir():
            return f"Source directory {source_path} not found"
        return f"{cmd} not found. Is Rust installed?"

    def _env(self, opts: BuilderOpts) -> dict[str, str]:
        return {TARGET_DIR_ENV: str(self.target_dir(opts)), **env_pairs(opts)}

    def _parse_output(self, output: str) -> tuple[list[CargoError], list[CargoError]]:
        """Extracts errors and warnings from Cargo output."""
        errors: list[CargoError] = []
        warnings: list[CargoError] = []

        current_error: Optional[CargoError] = None

        for line in output.split("\n"):
            match = self.ERROR_PATTERN.match(line)
            if match:
                if current_error:
                    if current_error.level == "error":
                        errors.append(current_error)
                    else:
                        warnings.append(current_error)

                current_error = CargoError(
                    level=match.group("level"),
                    message=match.group("message"),
                    code=match.group("code"),
                )
                continue

            if current_error:
                loc_match = self.LOCATION_PATTERN.match(line)
                if loc_match:
                    current_error.file = loc_match.group("file")
                    current_error.line = int(loc_match.group("line"))
                    current_error.column = int(loc_match.group("column"))

        # Last diagnostic
        if current_error:
            if current_error.level == "error":
                errors.append(current_error)
            else:
                warnings.append(current_error)

        return errors, warnings

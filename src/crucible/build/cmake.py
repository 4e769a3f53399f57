"""
Crucible Build - CMake (C/C++) builder

Builder options:

- `cmake` / `ctest`: `"system"` (default) or `{"bin": "/path/to/tool"}`
- `target`: CMake target to build (defaults to the first binary name)
- `args`: extra configure arguments, e.g. `["-DENABLE_FEATURE=ON"]`
- `build_dir`: build directory, relative to the project root (default: `<build_path>/native/<app>/build`)
- `test_build_dir`: test build directory, relative to the project root (default: `<build_path>/native/<app>/test_build`)
- `test_args`: extra arguments for ctest, e.g. `["-R", "pattern"]`
"""

from pathlib import Path
from typing import Sequence

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
from crucible.build.runner import CommandResult, run_command
from crucible.core.exceptions import BuildError
from crucible.core.logger import log
from crucible.core.platform import exe_extension

SOURCE_EXTENSIONS = (".c", ".cc", ".cpp", ".cxx", ".h", ".hpp")
PROJECT_FILES = ("CMakeLists.txt", "CMakePresets.json")


class CMakeBuilder:
    """CMake configure + build wrapper, with ctest support."""

    def default_source_path(self) -> str:
        return "c_src"

    def validate_opts(self, opts: BuilderOpts) -> None:
        check_tool("cmake", opts.get("cmake"))
        check_tool("ctest", opts.get("ctest"))
        check_optional_str("target", opts.get("target"))
        check_str_list("args", opts.get("args"))
        check_optional_str("build_dir", opts.get("build_dir"))
        check_optional_str("test_build_dir", opts.get("test_build_dir"))
        check_str_list("test_args", opts.get("test_args"))

    # ========================================================================
    # Build
    # ========================================================================

    def build(self, source_path: Path, profile: str, opts: BuilderOpts) -> None:
        """Configures and builds the target; raises BuildError on failure."""
        component = str(opts.get("app", "cmake"))
        binaries = list(opts.get("binaries") or [])
        target = opts.get("target") or (binaries[0] if binaries else None)
        if not target:
            raise BuildError("No CMake target given and no binaries to derive one from", component)

        build_dir = self.build_dir(opts)
        build_dir.mkdir(parents=True, exist_ok=True)
        log.info(f"🔨 Building {component} with cmake ({profile})...")

        configure_args = [
            "-S", str(source_path),
            "-B", str(build_dir),
            f"-DCMAKE_BUILD_TYPE={self._build_type(profile)}",
            *(opts.get("args") or []),
        ]
        self._run_or_raise(opts, configure_args, component)

        build_args = ["--build", str(build_dir), "--target", target]
        if profile == "release":
            build_args.extend(["--config", "Release"])
        self._run_or_raise(opts, build_args, component)

        log.success(f"{component} built")

    def binary_paths(
        self,
        source_path: Path,
        binaries: Sequence[str],
        profile: str,
        opts: BuilderOpts,
    ) -> dict[str, Path]:
        """
        Generators disagree on output layout (flat vs. `Release/`/`Debug/`
        for multi-config), so the first existing candidate wins, falling
        back to the flat path.
        """
        build_dir = self.build_dir(opts)
        extension = exe_extension()

        paths = {}
        for name in binaries:
            binary_name = f"{name}{extension}"
            paths[name] = self._find_output(build_dir, binary_name) or build_dir / binary_name
        return paths

    def discover_resources(self, source_path: Path) -> list[Path]:
        """CMake project files plus C/C++ sources under src/ and test/."""
        source_path = Path(source_path)
        resources = [source_path / f for f in PROJECT_FILES if (source_path / f).exists()]

        for subdir in ("src", "test"):
            root = source_path / subdir
            if not root.is_dir():
                continue
            resources.extend(
                path for path in sorted(root.rglob("*"))
                if path.is_file() and path.suffix in SOURCE_EXTENSIONS
            )

        return resources

    # ========================================================================
    # Test
    # ========================================================================

    def supports_test(self) -> bool:
        return True

    def test(self, source_path: Path, opts: BuilderOpts) -> TestResult:
        """
        Configure with BUILD_TESTING=ON in a separate directory, build
        everything, then run ctest.

        A failing configure or build stage returns that stage's result
        without running ctest.
        """
        test_dir = self.test_build_dir(opts)
        test_dir.mkdir(parents=True, exist_ok=True)

        cmake = tool_bin(opts.get("cmake"), "cmake")
        configure_args = [
            "-S", str(source_path),
            "-B", str(test_dir),
            "-DBUILD_TESTING=ON",
            *(opts.get("args") or []),
        ]

        configured = self._run_for_test(cmake, configure_args, None, opts)
        if not configured.ok:
            return configured

        built = self._run_for_test(cmake, ["--build", str(test_dir)], None, opts)
        if not built.ok:
            return built

        ctest_dir = test_dir / "test" if (test_dir / "test").is_dir() else test_dir
        return self._run_for_test(
            tool_bin(opts.get("ctest"), "ctest"),
            ["--output-on-failure", *(opts.get("test_args") or [])],
            ctest_dir,
            opts,
        )

    # ========================================================================
    # Helpers
    # ========================================================================

    def build_dir(self, opts: BuilderOpts) -> Path:
        return option_path(opts, "build_dir") or native_dir(opts) / "build"

    def test_build_dir(self, opts: BuilderOpts) -> Path:
        """Kept apart from build_dir so BUILD_TESTING never leaks into release builds."""
        return option_path(opts, "test_build_dir") or native_dir(opts) / "test_build"

    @staticmethod
    def _build_type(profile: str) -> str:
        return "Release" if profile == "release" else "Debug"

    @staticmethod
    def _find_output(build_dir: Path, binary_name: str) -> Path | None:
        candidates = [
            build_dir / binary_name,
            build_dir / "Release" / binary_name,
            build_dir / "Debug" / binary_name,
        ]
        return next((c for c in candidates if c.is_file()), None)

    def _run_or_raise(self, opts: BuilderOpts, args: list[str], component: str) -> CommandResult:
        cmd = tool_bin(opts.get("cmake"), "cmake")
        try:
            result = run_command(cmd, args, env=env_pairs(opts))
        except FileNotFoundError:
            raise BuildError(f"{cmd} not found. Is CMake installed?", component)

        if not result.success:
            log.error(f"{component} failed")
            raise BuildError(
                f"{result.command_line} failed with status {result.exit_code}",
                component,
                exit_code=result.exit_code,
                output=result.output,
            )

        if log.verbose and result.output:
            log.output(result.output)
        return result

    def _run_for_test(self, cmd: str, args: list[str], cwd: Path | None, opts: BuilderOpts) -> TestResult:
        try:
            result = run_command(cmd, args, cwd=cwd, env=env_pairs(opts))
        except FileNotFoundError:
            return TestResult.from_exit(127, f"{cmd} not found")
        return TestResult.from_exit(result.exit_code, result.output)

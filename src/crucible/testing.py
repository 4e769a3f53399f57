"""
Crucible - Native test runner

Runs each descriptor's native test suite through its builder and
aggregates pass/fail/skip counts. Failures are reported as data; the
caller decides whether they are fatal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Sequence

from crucible.build.base import TestResult, TestStatus, supports_test
from crucible.build.registry import get_builder
from crucible.core.logger import console, log
from crucible.descriptor import NativeBuildDescriptor


@dataclass
class TestSummary:
    __test__ = False

    results: list[tuple[str, TestResult]] = field(default_factory=list)

    def _count(self, status: TestStatus) -> int:
        return sum(1 for _, r in self.results if r.status is status)

    @property
    def passed(self) -> int:
        return self._count(TestStatus.OK)

    @property
    def failed(self) -> int:
        return self._count(TestStatus.ERROR)

    @property
    def skipped(self) -> int:
        return self._count(TestStatus.SKIPPED)

    @property
    def success(self) -> bool:
        return self.failed == 0

    def __str__(self) -> str:
        return f"Native tests: {self.passed} passed, {self.failed} failed, {self.skipped} skipped"


class NativeTestRunner:
    """Drives builder test capabilities across several descriptors."""

    __test__ = False

    def __init__(
        self,
        options_for: Optional[Callable[[NativeBuildDescriptor], dict[str, Any]]] = None,
        verbose: bool = False,
    ):
        # Builds the builder option bag; the orchestrator supplies build_path
        self.options_for = options_for or NativeBuildDescriptor.builder_options
        self.verbose = verbose

    def run(
        self,
        descriptors: Iterable[tuple[str, NativeBuildDescriptor]],
        test_args: Sequence[str] = (),
        only: Optional[str] = None,
    ) -> TestSummary:
        summary = TestSummary()
        for name, descriptor in descriptors:
            if only and only not in name:
                continue
            summary.results.append((name, self.run_one(name, descriptor, test_args)))

        console.print()
        log.info(str(summary))
        return summary

    def run_one(
        self,
        name: str,
        descriptor: NativeBuildDescriptor,
        test_args: Sequence[str] = (),
    ) -> TestResult:
        console.print()
        log.info(f"Running native tests for {name}...")

        if not descriptor.platform_supported:
            log.step(f"{name}: skipped (unsupported platform)")
            return TestResult.skipped()

        builder = get_builder(descriptor.builder)
        if not supports_test(builder):
            log.step(f"{name}: skipped (builder does not support testing)")
            return TestResult.skipped()

        if not Path(descriptor.source_path).is_dir():
            log.step(f"{name}: skipped (no {descriptor.source_path} directory)")
            return TestResult.skipped()

        opts = self.options_for(descriptor)
        opts["test_args"] = [*(opts.get("test_args") or []), *test_args]
        result = builder.test(descriptor.source_path, opts)

        if self.verbose or result.status is TestStatus.ERROR:
            log.output(result.output)

        if result.ok:
            log.component(name, "PASSED")
        else:
            log.component(name, f"FAILED (exit code {result.exit_code})", success=False)
        return result

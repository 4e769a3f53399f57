"""
Crucible Build - Native toolchain builders
"""

from crucible.build.base import Builder, TestResult, TestStatus, supports_test
from crucible.build.cargo import CargoBuilder
from crucible.build.cmake import CMakeBuilder
from crucible.build.registry import get_builder, register_builder
from crucible.build.artifacts import copy_binaries

__all__ = [
    "Builder",
    "TestResult",
    "TestStatus",
    "supports_test",
    "CargoBuilder",
    "CMakeBuilder",
    "get_builder",
    "register_builder",
    "copy_binaries",
]

"""
Crucible Build - Builder selection

Short tags resolve to the built-in builders; anything else is a custom
builder reference. Custom builders are not checked against the contract
up front: a missing method surfaces as AttributeError when called.
"""

import importlib
from typing import Any, Callable

from crucible.build.base import Builder
from crucible.build.cargo import CargoBuilder
from crucible.build.cmake import CMakeBuilder
from crucible.core.exceptions import ConfigError

BUILDERS: dict[str, Callable[[], Any]] = {
    "cargo": CargoBuilder,
    "cmake": CMakeBuilder,
}


def register_builder(tag: str, factory: Callable[[], Any]) -> None:
    """Makes `tag` resolve to `factory()`."""
    BUILDERS[tag] = factory


def get_builder(selector: Any) -> Builder:
    """
    Resolves a builder selector.

    - `"cargo"` / `"cmake"` (or any registered tag)
    - `"package.module:Attribute"`, imported on demand
    - a builder class (instantiated without arguments) or instance
    """
    if isinstance(selector, str):
        if selector in BUILDERS:
            return BUILDERS[selector]()
        if ":" not in selector:
            raise ConfigError(
                f"Unknown builder '{selector}'",
                f"Known builders: {', '.join(sorted(BUILDERS))}; "
                "custom builders use 'package.module:Attribute'",
            )
        selector = _import_reference(selector)

    if isinstance(selector, type):
        return selector()
    return selector


def _import_reference(reference: str) -> Any:
    module_name, _, attribute = reference.partition(":")
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attribute)
    except (ImportError, AttributeError) as e:
        raise ConfigError(f"Cannot load builder '{reference}': {e}")

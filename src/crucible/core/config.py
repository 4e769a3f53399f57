"""
Crucible Core - Centralized configuration (crucible.toml)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
import toml

from crucible.core.exceptions import ConfigError
from crucible.core.paths import DEFAULT_BUILD_DIR, DEFAULT_ENV, PathResolver, current_env

CONFIG_FILE = "crucible.toml"


@dataclass
class ProjectConfig:
    """Project section."""
    name: str = "crucible"
    root: Path = field(default_factory=Path)
    env: str = DEFAULT_ENV
    build_dir: str = DEFAULT_BUILD_DIR


@dataclass
class NativeDeclaration:
    """
    One `[[native]]` entry.

    `options` keeps the raw table (minus `name`) so the resolver sees
    exactly what the user wrote, unknown keys included.
    """
    name: str
    app: str
    options: dict[str, Any] = field(default_factory=dict)


@dataclass
class CrucibleConfig:
    """Main Crucible configuration."""
    project: ProjectConfig = field(default_factory=ProjectConfig)
    natives: list[NativeDeclaration] = field(default_factory=list)
    defaults: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def project_root(self) -> Path:
        return self.project.root

    @property
    def build_env(self) -> str:
        """Effective build environment (`CRUCIBLE_ENV` wins over the file)."""
        return current_env(self.project.env)

    def paths(self) -> PathResolver:
        return PathResolver(self.project.root, env=self.build_env, build_dir=self.project.build_dir)

    def env_options(self, name: str) -> dict[str, Any]:
        """Environment-level defaults for one declaration."""
        return dict(self.defaults.get(name, {}))

    def select(self, only: str | None = None) -> list[NativeDeclaration]:
        """Declarations whose name contains `only` (all when not given)."""
        if not only:
            return list(self.natives)
        return [n for n in self.natives if only in n.name]

    @classmethod
    def from_dict(cls, data: dict[str, Any], config_path: Path) -> "CrucibleConfig":
        """Builds configuration from a parsed TOML dictionary."""
        # Root is relative to the config file
        project_data = data.get("project", {})
        root_str = project_data.get("root", ".")
        project_root = (config_path.parent / root_str).resolve()

        project = ProjectConfig(
            name=project_data.get("name", project_root.name),
            root=project_root,
            env=project_data.get("env", DEFAULT_ENV),
            build_dir=project_data.get("build_dir", DEFAULT_BUILD_DIR),
        )

        natives = []
        for index, entry in enumerate(data.get("native", [])):
            if not isinstance(entry, dict):
                raise ConfigError(f"[[native]] entry #{index + 1} must be a table")
            options = dict(entry)
            name = options.pop("name", None)
            app = options.get("app")
            if not app:
                raise ConfigError(f"[[native]] entry #{index + 1} requires 'app'")
            natives.append(NativeDeclaration(name=str(name or app), app=str(app), options=options))

        defaults = data.get("defaults", {})
        if not isinstance(defaults, dict):
            raise ConfigError("[defaults] must be a table of tables")

        return cls(project=project, natives=natives, defaults=defaults)


def load_config(config_path: Path | None = None) -> CrucibleConfig:
    """
    Loads configuration from the TOML file.

    When not given, looks for crucible.toml in the current directory and its parent.
    """
    if config_path is None:
        search_paths = [
            Path.cwd() / CONFIG_FILE,
            Path.cwd().parent / CONFIG_FILE,
        ]

        for path in search_paths:
            if path.exists():
                config_path = path
                break
        else:
            raise ConfigError(
                f"{CONFIG_FILE} not found. "
                f"Searched: {[str(p) for p in search_paths]}"
            )

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        data = toml.load(config_path)
    except toml.TomlDecodeError as e:
        raise ConfigError(f"Failed to parse {config_path}: {e}")

    return CrucibleConfig.from_dict(data, config_path)

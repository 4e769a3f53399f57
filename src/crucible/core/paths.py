"""
Crucible Core - Build path resolution
"""

from pathlib import Path
from typing import Optional
import os

DEFAULT_BUILD_DIR = "_build"
DEFAULT_ENV = "dev"
ENV_VAR = "CRUCIBLE_ENV"


def current_env(default: Optional[str] = None) -> str:
    """Build environment name: `CRUCIBLE_ENV`, then the given default, then `dev`."""
    return os.environ.get(ENV_VAR) or default or DEFAULT_ENV


class PathResolver:
    """Resolves every directory Crucible reads from or writes to."""

    def __init__(
        self,
        project_root: Path,
        env: Optional[str] = None,
        build_dir: str = DEFAULT_BUILD_DIR,
    ):
        self.project_root = Path(project_root).resolve()
        self.env = env or current_env()
        self.build_dir = build_dir

    @classmethod
    def from_cwd(cls) -> "PathResolver":
        """Resolver rooted at the current working directory."""
        return cls(Path.cwd())

    # ========================================================================
    # Build Layout
    # ========================================================================

    @property
    def build_path(self) -> Path:
        """Per-environment build root, e.g. `_build/dev`."""
        return self.project_root / self.build_dir / self.env

    @staticmethod
    def native_dir(build_path: Path | str, app: str) -> Path:
        """Toolchain work directory for one application."""
        return Path(build_path) / "native" / str(app)

    def priv_dir(self, app: str) -> Path:
        """Destination directory for copied binaries."""
        return self.build_path / "lib" / str(app) / "priv"

    def ensure_priv_dir(self, app: str) -> Path:
        priv = self.priv_dir(app)
        priv.mkdir(parents=True, exist_ok=True)
        return priv

    # ========================================================================
    # Utilities
    # ========================================================================

    def resolve_source(self, path: Path | str) -> Path:
        """Absolute source path; relative paths are taken from the project root."""
        path = Path(path)
        if path.is_absolute():
            return path
        return self.project_root / path

    def relative(self, path: Path) -> Path:
        """Returns the path relative to the project, when possible."""
        try:
            return path.relative_to(self.project_root)
        except ValueError:
            return path

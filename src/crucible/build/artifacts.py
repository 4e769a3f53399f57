"""
Crucible Build - Copies built binaries into the priv directory
"""

import hashlib
import shutil
from pathlib import Path
from typing import Mapping

from crucible.core.logger import log
from crucible.core.platform import OS, current_os


def copy_binaries(binary_paths: Mapping[str, Path], priv_dir: Path) -> list[Path]:
    """
    Copies each built binary into `priv_dir` and marks it executable.

    A missing binary is only logged; its destination is still returned so
    callers track it. The failure shows up when the path is used.
    """
    priv_dir.mkdir(parents=True, exist_ok=True)

    destinations = []
    for name, source in binary_paths.items():
        source = Path(source)
        dest = priv_dir / source.name
        copy_binary(name, source, dest)
        destinations.append(dest)
    return destinations


def copy_binary(name: str, source: Path, dest: Path) -> bool:
    """Copies one binary; returns False when it has not been built."""
    if not source.is_file():
        log.info(f"Binary {name} not found at {source}, skipping")
        return False

    shutil.copy2(source, dest)
    if current_os() is not OS.WINDOWS:
        dest.chmod(0o755)

    log.step(f"{source} → {dest} ({dest.stat().st_size:,} bytes)")
    log.debug(f"{dest.name} sha256={checksum(dest)}")
    return True


def checksum(path: Path) -> str:
    """SHA256 of a file."""
    sha256 = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            sha256.update(chunk)
    return sha256.hexdigest()

import os
import subprocess
import sys
from pathlib import Path
from textwrap import dedent

import pytest

from crucible import accessors
from crucible.accessors import NativeBinaries, accessor_name
from crucible.core.exceptions import ConfigError, UnsupportedPlatformError
from crucible.descriptor import NativeBuildDescriptor


def _descriptor(**changes) -> NativeBuildDescriptor:
    base = NativeBuildDescriptor(app="demo", builder="cargo", binaries=("hello", "a-b"), profile="debug")
    return base.evolve(**changes)


def test_accessor_name_normalizes_hyphens() -> None:
    assert accessor_name("a-b") == "a_b_path"
    assert accessor_name("hello") == "hello_path"


def test_supported_paths(tmp_path: Path, on_platform) -> None:
    on_platform("Linux", "x86_64")
    bins = NativeBinaries.from_descriptor(_descriptor(), tmp_path / "priv")

    assert bins.platform_supported() is True
    assert bins.hello_path() == tmp_path / "priv" / "hello"
    assert bins.a_b_path() == tmp_path / "priv" / "a-b"
    assert bins.bin_path("a-b") == tmp_path / "priv" / "a-b"
    assert bins.required_os() is None
    assert bins.required_arch() is None
    assert "a_b_path" in dir(bins)


def test_windows_paths_carry_exe_suffix(tmp_path: Path, on_platform) -> None:
    on_platform("Windows", "AMD64")
    bins = NativeBinaries(["tool"], tmp_path)
    assert bins.tool_path() == tmp_path / "tool.exe"


def test_unsupported_platform_raises_with_binary_name(tmp_path: Path, on_platform) -> None:
    on_platform("Linux", "x86_64")
    descriptor = _descriptor(os=("windows",), arch=None, platform_supported=False)
    bins = NativeBinaries.from_descriptor(descriptor, tmp_path)

    assert bins.platform_supported() is False
    assert bins.required_os() == ["windows"]

    with pytest.raises(UnsupportedPlatformError) as excinfo:
        bins.a_b_path()
    assert excinfo.value.binary == "a-b"
    assert "Required: windows/any" in str(excinfo.value)

    with pytest.raises(UnsupportedPlatformError) as excinfo:
        bins.bin_path("anything")
    assert excinfo.value.binary == "anything"


def test_lookup_returns_result_instead_of_raising(tmp_path: Path) -> None:
    bins = NativeBinaries(["hello"], tmp_path, platform_supported=False, required_arch=["arm64"])

    result = bins.lookup("hello")

    assert result.ok is False
    assert result.path is None
    assert result.error.required_arch == ["arm64"]


def test_unknown_attribute_raises_attribute_error(tmp_path: Path) -> None:
    bins = NativeBinaries(["hello"], tmp_path)
    with pytest.raises(AttributeError):
        bins.missing_path()


def test_config_snapshot(tmp_path: Path) -> None:
    bins = NativeBinaries.from_descriptor(_descriptor(os=("linux",)), tmp_path)
    config = bins.config()
    assert config["app"] == "demo"
    assert config["builder"] == "cargo"
    assert config["binaries"] == ["hello", "a-b"]
    assert config["os"] == ["linux"]
    assert config["arch"] is None


def test_registry_roundtrip(tmp_path: Path) -> None:
    bins = NativeBinaries(["hello"], tmp_path)
    accessors.register("Demo.Native", bins)

    assert accessors.lookup("Demo.Native") is bins
    assert list(accessors.registered()) == ["Demo.Native"]

    with pytest.raises(ConfigError, match="Other"):
        accessors.lookup("Other")


def _write_config(root: Path) -> Path:
    config = root / "crucible.toml"
    config.write_text(
        dedent(
            """
            [project]
            env = "dev"

            [[native]]
            name = "Demo.Native"
            app = "demo"
            builder = "cargo"
            binaries = ["hello", "a-b"]

            [[native]]
            name = "Demo.Elsewhere"
            app = "demo"
            builder = "cargo"
            binaries = ["never"]

            [defaults."Demo.Elsewhere"]
            os = ["no-such-os"]
            """
        ),
        encoding="utf-8",
    )
    return config


def test_load_registers_every_declaration(tmp_path: Path, on_platform) -> None:
    on_platform("Linux", "x86_64")
    config = _write_config(tmp_path)

    loaded = accessors.load(config)

    priv = tmp_path.resolve() / "_build" / "dev" / "lib" / "demo" / "priv"
    assert sorted(loaded) == ["Demo.Elsewhere", "Demo.Native"]
    assert accessors.lookup("Demo.Native").a_b_path() == priv / "a-b"
    assert accessors.lookup("Demo.Elsewhere").platform_supported() is False
    assert not (tmp_path / "_build").exists()


def test_lookup_loads_config_in_a_fresh_interpreter(tmp_path: Path) -> None:
    _write_config(tmp_path)
    src = Path(__file__).resolve().parent.parent / "src"
    env = {**os.environ, "PYTHONPATH": os.pathsep.join(filter(None, [str(src), os.environ.get("PYTHONPATH")]))}

    completed = subprocess.run(
        [sys.executable, "-c", "import crucible.accessors as a; print(a.lookup('Demo.Native').hello_path())"],
        cwd=tmp_path,
        env=env,
        capture_output=True,
        text=True,
    )

    assert completed.returncode == 0, completed.stderr
    expected = tmp_path.resolve() / "_build" / "dev" / "lib" / "demo" / "priv" / "hello"
    assert completed.stdout.strip().startswith(str(expected))


def test_lookup_unknown_identifier_after_loading(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_config(tmp_path)
    monkeypatch.chdir(tmp_path)

    with pytest.raises(ConfigError, match="Demo.Missing"):
        accessors.lookup("Demo.Missing")
    assert "Demo.Native" in accessors.registered()

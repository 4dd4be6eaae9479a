"""Pytest configuration for the rwx build action tests."""

from __future__ import annotations

import sys
import typing as typ
from pathlib import Path

import pytest

if typ.TYPE_CHECKING:
    import collections.abc as cabc

REPO_ROOT = Path(__file__).resolve().parent

CMD_MOX_UNSUPPORTED = pytest.mark.skipif(
    sys.platform == "win32", reason="cmd-mox does not support Windows"
)
POSIX_ONLY = pytest.mark.skipif(
    sys.platform == "win32", reason="requires a POSIX shell to run fake binaries"
)

sys.modules.setdefault("rwx_action_conftest", sys.modules[__name__])


class CmdDouble(typ.Protocol):
    """Contract for cmd-mox doubles that record expectations and behaviour."""

    call_count: int

    def with_args(self, *args: str) -> typ.Self:
        """Set the expected argv for the double."""
        ...

    def returns(
        self,
        *,
        stdout: str = "",
        stderr: str = "",
        exit_code: int = 0,
        **_: object,
    ) -> typ.Self:
        """Provide canned output for the command invocation."""
        ...


class CmdMoxEnvironment(typ.Protocol):
    """Subset of :class:`cmd_mox.EnvironmentManager` used in tests."""

    shim_dir: Path | None


class CmdMox(typ.Protocol):
    """Typed facade for the cmd-mox pytest fixture used in tests."""

    environment: CmdMoxEnvironment

    def stub(self, command: str) -> CmdDouble:
        """Register a stubbed command double."""
        ...

    def replay(self) -> None:
        """Activate the recorded doubles."""
        ...

    def verify(self) -> None:
        """Assert that recorded expectations were satisfied."""
        ...


def shim_path(cmd_mox: CmdMox, command: str) -> Path:
    """Return the shim path for ``command`` ensuring the environment is ready."""
    shim_dir = cmd_mox.environment.shim_dir
    if shim_dir is None:  # pragma: no cover - defensive guard
        msg = "cmd-mox shim directory is unavailable"
        raise RuntimeError(msg)
    return Path(shim_dir) / command


def write_fake_cli(path: Path, body: str) -> Path:
    """Write an executable POSIX shell script standing in for ``rwx``."""
    path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    path.chmod(0o755)
    return path


@pytest.fixture(autouse=True)
def _isolate_action_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove runner variables so tests never write to a real workflow."""
    for name in (
        "GITHUB_OUTPUT",
        "GITHUB_PATH",
        "GITHUB_STEP_SUMMARY",
        "GITHUB_TOKEN",
        "RWX_ACCESS_TOKEN",
        "RWX_RELEASE_PARSER",
        "DOCKER_CONFIG",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def github_output(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ``GITHUB_OUTPUT`` at an empty temporary file."""
    path = tmp_path / "github_output"
    path.touch()
    monkeypatch.setenv("GITHUB_OUTPUT", str(path))
    return path


def parse_github_output(path: Path) -> dict[str, str]:
    """Parse a ``GITHUB_OUTPUT`` file, including heredoc values."""
    values: dict[str, str] = {}
    lines: cabc.Iterator[str] = iter(path.read_text(encoding="utf-8").splitlines())
    for line in lines:
        if "<<" in line and "=" not in line.split("<<", 1)[0]:
            key, delimiter = line.split("<<", 1)
            body: list[str] = []
            for inner in lines:
                if inner == delimiter:
                    break
                body.append(inner)
            values[key] = "\n".join(body)
            continue
        key, _, value = line.partition("=")
        values[key] = value
    return values


if sys.platform != "win32":  # pragma: win32 no cover - windows lacks cmd-mox
    pytest_plugins = ("cmd_mox.pytest_plugin",)
else:

    @pytest.fixture
    def cmd_mox() -> typ.NoReturn:  # pragma: win32 no cover
        """Skip tests that rely on cmd-mox on Windows."""
        pytest.skip("cmd-mox does not support Windows")
        unreachable = "unreachable"
        raise RuntimeError(unreachable)

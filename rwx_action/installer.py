"""Download and install the ``rwx`` CLI for the host platform.

The artifact is downloaded into a fresh temporary directory and only copied
to its final location once the download has completed, so a failed download
never leaves a partial or mismatched binary on ``PATH``. The temporary
directory is removed on every exit path.

Installation prefers ``/usr/local/bin`` through passwordless ``sudo`` and
falls back to ``~/.local/bin``. The fallback needs a search-path change,
which is returned as an :class:`EnvironmentMutation` for the caller to apply
rather than applied here.
"""

from __future__ import annotations

import collections.abc as cabc
import contextlib
import dataclasses
import os
import shutil
import sys
import tempfile
import typing as typ
from pathlib import Path

import httpx
from plumbum import local
from plumbum.commands.processes import CommandNotFound, ProcessExecutionError

from .cmd_utils import RunResult, run_cmd
from .errors import DownloadError, InstallError
from .output import append_github_path

if typ.TYPE_CHECKING:
    from .platforms import Platform

__all__ = [
    "CLI_REPOSITORY",
    "RELEASE_HOST",
    "SYSTEM_BIN_DIR",
    "TOOL_NAME",
    "EnvironmentMutation",
    "InstalledBinary",
    "download_binary",
    "download_url",
    "has_passwordless_sudo",
    "install_cli",
    "verify_cli",
]

RELEASE_HOST = "https://github.com"
CLI_REPOSITORY = "rwx-cloud/cli"
TOOL_NAME = "rwx"
SYSTEM_BIN_DIR = Path("/usr/local/bin")

_DOWNLOAD_TIMEOUT = 120.0
_EXECUTABLE_MODE = 0o755


@dataclasses.dataclass(frozen=True, slots=True)
class EnvironmentMutation:
    """Search-path change required for the installed CLI to be found."""

    path_prefix: Path | None = None

    def apply(
        self,
        environ: cabc.MutableMapping[str, str] | None = None,
        *,
        github_path: Path | None = None,
    ) -> None:
        """Move :attr:`path_prefix` to the front of ``PATH`` and record it.

        Earlier occurrences are dropped so an older ``rwx`` cannot shadow the
        installed one.
        """
        if self.path_prefix is None:
            return
        env = os.environ if environ is None else environ
        current = env.get("PATH", "")
        entries = current.split(os.pathsep) if current else []
        prefix = str(self.path_prefix)
        env["PATH"] = os.pathsep.join(
            [prefix, *(entry for entry in entries if entry != prefix)]
        )
        if github_path is not None:
            append_github_path(github_path, self.path_prefix)


@dataclasses.dataclass(frozen=True, slots=True)
class InstalledBinary:
    """The installed CLI and the environment change it needs."""

    path: Path
    version: str
    mutation: EnvironmentMutation


def download_url(
    version: str,
    platform: Platform,
    *,
    host: str = RELEASE_HOST,
    repository: str = CLI_REPOSITORY,
) -> str:
    """Return the release download URL for ``version`` on ``platform``.

    Examples
    --------
    >>> from rwx_action.platforms import Platform
    >>> download_url("v2.3.1", Platform("linux", "x86_64"))
    'https://github.com/rwx-cloud/cli/releases/download/v2.3.1/rwx-linux-x86_64'
    """
    asset = platform.asset_name(TOOL_NAME)
    return f"{host}/{repository}/releases/download/{version}/{asset}"


def download_binary(
    url: str,
    destination: Path,
    *,
    transport: httpx.BaseTransport | None = None,
) -> None:
    """Stream ``url`` into ``destination``.

    Raises
    ------
    DownloadError
        If the request fails, the server answers with a non-success status
        or the payload cannot be written to ``destination``.
    """
    try:
        with (
            httpx.Client(
                timeout=httpx.Timeout(_DOWNLOAD_TIMEOUT),
                transport=transport,
                follow_redirects=True,
            ) as client,
            client.stream("GET", url) as response,
        ):
            if not response.is_success:
                msg = f"Failed to download {url}: HTTP {response.status_code}"
                raise DownloadError(msg)
            with destination.open("wb") as handle:
                for chunk in response.iter_bytes():
                    handle.write(chunk)
    except httpx.HTTPError as exc:
        msg = f"Failed to download {url}: {exc}"
        raise DownloadError(msg) from exc
    except OSError as exc:
        msg = f"Failed to write {destination}: {exc}"
        raise DownloadError(msg) from exc


def has_passwordless_sudo() -> bool:
    """Return ``True`` when ``sudo -n true`` succeeds without a prompt."""
    sudo = shutil.which("sudo")
    if sudo is None:
        return False
    try:
        result = run_cmd(local[sudo]["-n", "true"], method="run", echo=False)
    except (CommandNotFound, OSError):
        return False
    return isinstance(result, RunResult) and result.returncode == 0


def _install_elevated(staged: Path, destination: Path) -> bool:
    """Install ``staged`` to ``destination`` with ``sudo install``."""
    try:
        sudo = local[shutil.which("sudo") or "sudo"]
        run_cmd(sudo["install", str(staged), str(destination)])
    except (ProcessExecutionError, CommandNotFound) as exc:
        print(
            f"::warning::sudo install to {destination} failed ({exc}); "
            "installing to the user bin directory instead",
            file=sys.stderr,
        )
        return False
    return True


def _install_user_local(staged: Path, bin_dir: Path) -> Path:
    """Copy ``staged`` into ``bin_dir`` and return the installed path."""
    destination = bin_dir / TOOL_NAME
    partial = bin_dir / f".{TOOL_NAME}.partial"
    try:
        bin_dir.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(staged, partial)
        partial.chmod(_EXECUTABLE_MODE)
        partial.replace(destination)
    except OSError as exc:
        with contextlib.suppress(OSError):
            partial.unlink(missing_ok=True)
        msg = f"Could not install {TOOL_NAME} into {bin_dir}: {exc}"
        raise InstallError(msg) from exc
    return destination


def install_cli(  # noqa: PLR0913
    version: str,
    platform: Platform,
    *,
    system_bin_dir: Path = SYSTEM_BIN_DIR,
    user_bin_dir: Path | None = None,
    elevated: cabc.Callable[[], bool] = has_passwordless_sudo,
    transport: httpx.BaseTransport | None = None,
) -> InstalledBinary:
    """Download ``version`` for ``platform`` and install it.

    Parameters
    ----------
    version
        Release tag to install, for example ``"v2.3.1"``.
    platform
        Target platform of the artifact.
    system_bin_dir
        Destination used when passwordless ``sudo`` is available.
    user_bin_dir
        Fallback destination; defaults to ``~/.local/bin``.
    elevated
        Predicate reporting whether passwordless ``sudo`` is available.
    transport
        Optional httpx transport used for the download.

    Returns
    -------
    InstalledBinary
        The installed binary and the environment mutation the caller must
        apply for it to be found on ``PATH``.

    Raises
    ------
    DownloadError
        If the artifact cannot be downloaded. Nothing is installed.
    InstallError
        If neither install location can be written.
    """
    url = download_url(version, platform)
    bin_dir = user_bin_dir or Path.home() / ".local" / "bin"
    print(f"Downloading RWX CLI from {url}...", flush=True)

    with tempfile.TemporaryDirectory(prefix="rwx-cli-") as tmpdir:
        staged = Path(tmpdir) / TOOL_NAME
        download_binary(url, staged, transport=transport)
        try:
            staged.chmod(_EXECUTABLE_MODE)
        except OSError as exc:
            msg = f"Could not make {staged} executable: {exc}"
            raise InstallError(msg) from exc

        system_path = system_bin_dir / TOOL_NAME
        if elevated() and _install_elevated(staged, system_path):
            return InstalledBinary(
                path=system_path, version=version, mutation=EnvironmentMutation()
            )

        installed = _install_user_local(staged, bin_dir)
        return InstalledBinary(
            path=installed,
            version=version,
            mutation=EnvironmentMutation(path_prefix=bin_dir),
        )


def verify_cli(binary: InstalledBinary) -> str:
    """Run ``rwx --version`` and return its output.

    Raises
    ------
    InstallError
        If the installed binary cannot be executed.
    """
    try:
        output = run_cmd(local[str(binary.path)]["--version"])
    except (ProcessExecutionError, CommandNotFound, OSError) as exc:
        msg = f"Installed {TOOL_NAME} at {binary.path} failed to run: {exc}"
        raise InstallError(msg) from exc
    version_output = str(output).strip()
    print("RWX CLI installed:")
    print(version_output)
    return version_output

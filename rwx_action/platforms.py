"""Map the host to the platform names used by ``rwx`` release artifacts."""

from __future__ import annotations

import dataclasses
import platform

from .errors import UnsupportedPlatformError

__all__ = ["Platform", "detect_platform"]

_OS_PREFIXES = (("Linux", "linux"), ("Darwin", "darwin"))
_ARCH_ALIASES = {"x86_64": "x86_64", "aarch64": "aarch64", "arm64": "aarch64"}


@dataclasses.dataclass(frozen=True, slots=True)
class Platform:
    """Operating system and CPU architecture of an artifact."""

    os: str
    arch: str

    def asset_name(self, tool: str = "rwx") -> str:
        """Return the release asset name for ``tool`` on this platform."""
        return f"{tool}-{self.os}-{self.arch}"


def _normalize_os(system: str) -> str:
    for prefix, name in _OS_PREFIXES:
        if system.startswith(prefix):
            return name
    msg = f"Unsupported OS: {system}"
    raise UnsupportedPlatformError(msg)


def _normalize_arch(machine: str) -> str:
    try:
        return _ARCH_ALIASES[machine]
    except KeyError as exc:
        msg = f"Unsupported architecture: {machine}"
        raise UnsupportedPlatformError(msg) from exc


def detect_platform(system: str | None = None, machine: str | None = None) -> Platform:
    """Return the :class:`Platform` for the host, or the given kernel/machine.

    Examples
    --------
    >>> detect_platform("Darwin", "arm64")
    Platform(os='darwin', arch='aarch64')

    Raises
    ------
    UnsupportedPlatformError
        If the kernel or architecture has no published ``rwx`` build.
    """
    system = platform.system() if system is None else system
    machine = platform.machine() if machine is None else machine
    return Platform(os=_normalize_os(system), arch=_normalize_arch(machine))

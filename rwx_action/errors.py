"""Error types shared across the rwx build action."""

from __future__ import annotations


class ActionError(RuntimeError):
    """Raised when the action cannot continue."""

    title = "rwx build failure"


class ConfigurationError(ActionError):
    """Raised when the action inputs or the host are misconfigured."""

    title = "Invalid configuration"


class UnsupportedPlatformError(ConfigurationError):
    """Raised when the host operating system or CPU is not supported."""

    title = "Unsupported platform"


class ReleaseIndexError(ActionError):
    """Raised when the release index cannot be fetched or understood."""


class VersionResolutionError(ActionError):
    """Raised when no release matches the requested major version."""

    title = "Version resolution failure"


class DownloadError(ActionError):
    """Raised when the CLI artifact cannot be downloaded."""

    title = "Download failure"


class InstallError(ActionError):
    """Raised when the downloaded CLI cannot be installed or executed."""

    title = "Install failure"


class BuildFailedError(ActionError):
    """Raised when ``rwx image build`` exits with a non-zero status."""

    title = "Build failure"

    def __init__(self, returncode: int, output: str) -> None:
        super().__init__(f"rwx image build exited with status {returncode}")
        self.returncode = returncode
        self.output = output


__all__ = [
    "ActionError",
    "BuildFailedError",
    "ConfigurationError",
    "DownloadError",
    "InstallError",
    "ReleaseIndexError",
    "UnsupportedPlatformError",
    "VersionResolutionError",
]

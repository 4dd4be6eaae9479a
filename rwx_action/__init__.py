"""Build images with the ``rwx`` CLI from a GitHub Actions workflow.

The package resolves and installs the ``rwx`` CLI, forwards the action inputs
to ``rwx image build`` and republishes the image reference and run URL found
in its output as step outputs.
"""

from __future__ import annotations

from .errors import (
    ActionError,
    BuildFailedError,
    ConfigurationError,
    DownloadError,
    InstallError,
    UnsupportedPlatformError,
    VersionResolutionError,
)
from .extract import BuildResult, extract_build_result
from .inputs import BuildInputs, load_inputs, normalize_input_env
from .pipeline import RunnerFiles, run_action
from .versions import select_release_parser

__all__ = [
    "ActionError",
    "BuildFailedError",
    "BuildInputs",
    "BuildResult",
    "ConfigurationError",
    "DownloadError",
    "InstallError",
    "RunnerFiles",
    "UnsupportedPlatformError",
    "VersionResolutionError",
    "extract_build_result",
    "load_inputs",
    "normalize_input_env",
    "run_action",
    "select_release_parser",
]

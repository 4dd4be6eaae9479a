"""Top-level flow of the action: resolve, install, build, report."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import logging
import os
import typing as typ
from pathlib import Path

from .errors import ConfigurationError
from .extract import extract_build_result
from .inputs import require_docker_credentials
from .installer import has_passwordless_sudo, install_cli, verify_cli
from .invoker import BuildRequest, build_arguments, run_build
from .output import (
    prepare_outputs,
    render_summary,
    write_github_output,
    write_step_summary,
)
from .platforms import detect_platform
from .versions import resolve_cli_version

if typ.TYPE_CHECKING:
    import httpx

    from .extract import BuildResult
    from .inputs import BuildInputs
    from .platforms import Platform
    from .versions import ReleaseParser

__all__ = ["RunnerFiles", "run_action"]

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class RunnerFiles:
    """Files the runner provides for communicating with the workflow."""

    output: Path
    path: Path | None = None
    summary: Path | None = None

    @classmethod
    def from_env(cls, environ: cabc.Mapping[str, str] | None = None) -> RunnerFiles:
        """Read the runner file locations from the environment.

        Raises
        ------
        ConfigurationError
            If ``GITHUB_OUTPUT`` is unset or empty.
        """
        env = os.environ if environ is None else environ
        output = env.get("GITHUB_OUTPUT")
        if not output:
            msg = "Environment variable 'GITHUB_OUTPUT' is not set."
            raise ConfigurationError(msg)
        path = env.get("GITHUB_PATH")
        summary = env.get("GITHUB_STEP_SUMMARY")
        return cls(
            output=Path(output),
            path=Path(path) if path else None,
            summary=Path(summary) if summary else None,
        )


def run_action(  # noqa: PLR0913
    inputs: BuildInputs,
    runner: RunnerFiles,
    *,
    parser: ReleaseParser | None = None,
    github_token: str | None = None,
    platform: Platform | None = None,
    user_bin_dir: Path | None = None,
    elevated: cabc.Callable[[], bool] = has_passwordless_sudo,
    transport: httpx.BaseTransport | None = None,
) -> BuildResult:
    """Install the CLI, run the build and publish its results.

    Configuration is checked before anything is downloaded. Outputs are only
    written once the build has succeeded.

    Raises
    ------
    ActionError
        Any fatal condition; see :mod:`rwx_action.errors`.
    """
    host = platform or detect_platform()
    if destination := inputs.push_destination:
        print(f"Pushing to registry: {destination}")
        require_docker_credentials()

    resolved = resolve_cli_version(
        parser=parser, token=github_token, transport=transport
    )
    logger.info("Using rwx CLI %s (from %s)", resolved.tag, resolved.source)

    binary = install_cli(
        resolved.tag,
        host,
        user_bin_dir=user_bin_dir,
        elevated=elevated,
        transport=transport,
    )
    binary.mutation.apply(github_path=runner.path)
    verify_cli(binary)

    request = BuildRequest.from_inputs(inputs)
    output = run_build(
        binary.path, build_arguments(request), access_token=inputs.access_token
    )

    result = extract_build_result(output, inputs.push_to)
    write_github_output(runner.output, prepare_outputs(result))
    if runner.summary is not None:
        write_step_summary(runner.summary, render_summary(result, version=resolved.tag))

    print("Build completed successfully!")
    print(f"Image Reference: {result.image_reference or ''}")
    if result.run_url:
        print(f"Run URL: {result.run_url}")
    return result

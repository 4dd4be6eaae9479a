#!/usr/bin/env -S uv run --script
# fmt: off
# /// script
# requires-python = ">=3.12"
# dependencies = [
#   "cyclopts>=3.24,<4.0",
#   "httpx>=0.28,<0.29",
#   "packaging>=24.0",
#   "plumbum>=1.8,<2.0",
#   "syspath-hack>=0.4.0,<0.5.0",
# ]
# ///
# fmt: on

"""Build an image with the ``rwx`` CLI and export its results.

Examples
--------
Run the action locally after exporting the required environment variables::

    export GITHUB_OUTPUT="$(mktemp)"
    export RWX_ACCESS_TOKEN=...
    INPUT_FILE=.rwx/build.yml INPUT_TARGET=app uv run scripts/build_push.py
"""

from __future__ import annotations

import logging
import os
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter
from syspath_hack import prepend_project_root

prepend_project_root(start=Path(__file__).resolve().parent)

from rwx_action import (
    ActionError,
    BuildFailedError,
    RunnerFiles,
    load_inputs,
    normalize_input_env,
    run_action,
    select_release_parser,
)
from rwx_action.inputs import DEFAULT_TIMEOUT

app: App = App(
    help="Build an image with rwx and publish the image reference.",
    config=cyclopts.config.Env("INPUT_", command=False),
)


def _report_failure(exc: ActionError) -> None:
    if isinstance(exc, BuildFailedError):
        print("Build failed:", file=sys.stderr)
        print(exc.output, file=sys.stderr)
    print(f"::error title={exc.title}::{exc}", file=sys.stderr)


@app.default
def main(  # noqa: PLR0913
    *,
    file: str = "",
    target: str = "",
    init: str = "",
    push_to: str = "",
    pull: str = "false",
    cache: str = "true",
    timeout: str = DEFAULT_TIMEOUT,
    access_token: typ.Annotated[str, Parameter(env_var="RWX_ACCESS_TOKEN")] = "",
) -> None:
    """Install the rwx CLI and run ``rwx image build``.

    Parameters
    ----------
    file
        Path to the rwx build definition.
    target
        Task key to build.
    init
        JSON object or comma-separated ``key=value`` init parameters.
    push_to
        Registry reference to push the built image to.
    pull
        Pull the built image locally after the build.
    cache
        Use the remote build cache.
    timeout
        Build timeout forwarded verbatim to ``rwx``.
    access_token
        rwx access token, read from ``RWX_ACCESS_TOKEN``.

    Raises
    ------
    SystemExit
        Raised with exit code ``1`` when the inputs are invalid or any step of
        the build fails.
    """
    try:
        runner = RunnerFiles.from_env()
        inputs = load_inputs(
            file=file,
            target=target,
            access_token=access_token,
            init=init,
            push_to=push_to,
            pull=pull,
            cache=cache,
            timeout=timeout,
        )
        run_action(
            inputs,
            runner,
            parser=select_release_parser(),
            github_token=os.environ.get("GITHUB_TOKEN"),
        )
    except ActionError as exc:
        _report_failure(exc)
        raise SystemExit(1) from exc


def _configure_logging() -> None:
    debug = os.environ.get("RUNNER_DEBUG") == "1"
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":
    _configure_logging()
    normalize_input_env()
    app()

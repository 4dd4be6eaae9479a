"""Assemble and run ``rwx image build``."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import os
import shlex
import typing as typ

from plumbum import local
from plumbum.commands.processes import CommandNotFound

from .cmd_utils import RunResult, run_cmd
from .errors import BuildFailedError
from .params import encode_init_params, encode_push_to

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .inputs import BuildInputs

__all__ = ["BuildRequest", "build_arguments", "run_build"]

# Shell convention for a command that could not be executed.
_NOT_STARTED = 127


@dataclasses.dataclass(frozen=True, slots=True)
class BuildRequest:
    """Everything ``rwx image build`` needs besides the credential."""

    file: str
    target: str
    init_args: tuple[str, ...] = ()
    push_args: tuple[str, ...] = ()
    pull: bool = False
    cache: bool = True
    timeout: str = ""

    @classmethod
    def from_inputs(cls, inputs: BuildInputs) -> BuildRequest:
        """Encode the user-facing inputs into a request."""
        return cls(
            file=inputs.file,
            target=inputs.target,
            init_args=tuple(encode_init_params(inputs.init)),
            push_args=tuple(encode_push_to(inputs.push_to)),
            pull=inputs.pull,
            cache=inputs.cache,
            timeout=inputs.timeout,
        )


def build_arguments(request: BuildRequest) -> list[str]:
    """Return the argument list for ``rwx`` in the order the CLI expects.

    Examples
    --------
    >>> build_arguments(BuildRequest(file=".rwx/build.yml", target="app"))
    ['image', 'build', '.rwx/build.yml', '--target', 'app', '--no-pull']
    """
    args = ["image", "build", request.file, "--target", request.target]
    args.extend(request.init_args)
    args.extend(request.push_args)
    if not request.pull:
        args.append("--no-pull")
    if not request.cache:
        args.append("--no-cache")
    if request.timeout:
        args.extend(("--timeout", request.timeout))
    return args


def run_build(
    binary: Path | str,
    arguments: cabc.Sequence[str],
    *,
    access_token: str,
    sink: typ.TextIO | None = None,
) -> str:
    """Run ``binary`` with ``arguments`` and return its combined output.

    Output is echoed line by line as it arrives.

    Raises
    ------
    BuildFailedError
        If the CLI exits with a non-zero status or cannot be started.
    """
    print(f"Running: rwx {shlex.join(arguments)}", flush=True)
    env = dict(os.environ) | {"RWX_ACCESS_TOKEN": access_token}
    try:
        result = typ.cast(
            "RunResult",
            run_cmd(
                local[str(binary)][list(arguments)],
                method="tee",
                env=env,
                echo=False,
                sink=sink,
            ),
        )
    except (CommandNotFound, OSError) as exc:
        output = f"Could not start {binary}: {exc}\n"
        raise BuildFailedError(_NOT_STARTED, output) from exc
    if result.returncode != 0:
        raise BuildFailedError(result.returncode, result.stdout)
    return result.stdout

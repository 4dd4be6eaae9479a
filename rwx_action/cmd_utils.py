r"""Helpers for running plumbum command invocations.

:func:`run_cmd` echoes each invocation before executing it and supports three
strategies: ``call`` (raise on failure, return stdout), ``run`` (return a
:class:`RunResult` without raising) and ``tee`` (stream merged stdout/stderr
to the console while capturing it).

Examples
--------
Capture a build while it prints live::

    >>> from plumbum import local
    >>> result = run_cmd(local["rwx"]["image", "build", "x.yml"], method="tee")
    $ rwx image build x.yml
    ...
    >>> result.returncode
    0
"""

from __future__ import annotations

import collections.abc as cabc
import os
import subprocess
import sys
import typing as typ

from plumbum import local

RunMethod = typ.Literal["call", "run", "tee"]


class RunResult(typ.NamedTuple):
    """Structured representation of a finished command."""

    returncode: int
    stdout: str
    stderr: str


@typ.runtime_checkable
class SupportsFormulate(typ.Protocol):
    """Objects that expose a shell representation via ``formulate``."""

    def formulate(self) -> cabc.Sequence[str]:  # pragma: no cover - protocol
        ...


@typ.runtime_checkable
class SupportsCall(SupportsFormulate, typ.Protocol):
    """Commands that can be invoked like ``cmd()``."""

    def __call__(
        self, *args: object, **kwargs: object
    ) -> object:  # pragma: no cover - protocol
        ...


@typ.runtime_checkable
class SupportsRun(SupportsFormulate, typ.Protocol):
    """Commands that implement :meth:`run`."""

    def run(
        self, *args: object, **run_kwargs: object
    ) -> object:  # pragma: no cover - protocol
        ...


@typ.runtime_checkable
class SupportsPopen(SupportsFormulate, typ.Protocol):
    """Commands that can be started as a :class:`subprocess.Popen`."""

    def popen(
        self, *args: object, **kwargs: object
    ) -> subprocess.Popen[bytes]:  # pragma: no cover - protocol
        ...


@typ.runtime_checkable
class SupportsWithEnv(SupportsFormulate, typ.Protocol):
    """Commands that support environment overrides via :meth:`with_env`."""

    def with_env(self, **env: str) -> SupportsWithEnv:  # pragma: no cover - protocol
        ...


def _ensure_text(value: str | bytes | None) -> str:
    """Return ``value`` as ``str`` replacing undecodable bytes."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return value.decode("utf-8", errors="replace")


def _collect_runtime_env(
    env: cabc.Mapping[str, str] | None,
) -> dict[str, str] | None:
    """Return an environment reflecting ``os.environ`` changes made after import.

    plumbum snapshots the environment when it is imported, so search-path
    updates applied by the installer would otherwise be invisible to children.
    """
    if env is not None:
        return {key: str(value) for key, value in env.items()}

    plumbum_env = typ.cast("cabc.Mapping[str, str]", local.env)
    base_env = {key: str(value) for key, value in plumbum_env.items()}
    runtime_env = base_env | {key: str(value) for key, value in os.environ.items()}
    return None if runtime_env == base_env else runtime_env


def _apply_environment(
    cmd: SupportsFormulate,
    runtime_env: dict[str, str] | None,
) -> SupportsFormulate:
    """Return *cmd* with *runtime_env* applied when provided."""
    if runtime_env is None:
        return cmd
    if not isinstance(cmd, SupportsWithEnv):  # pragma: no cover
        msg = "Command does not support environment overrides"
        raise TypeError(msg)
    return typ.cast("SupportsFormulate", cmd.with_env(**runtime_env))


def run_cmd(
    cmd: object,
    *,
    method: RunMethod = "call",
    env: cabc.Mapping[str, str] | None = None,
    echo: bool = True,
    **run_kwargs: object,
) -> object:
    """Execute ``cmd`` using plumbum semantics, echoing it first."""
    if not isinstance(cmd, SupportsFormulate):
        msg = "run_cmd requires a plumbum command invocation"
        raise TypeError(msg)

    if echo:
        print(f"$ {cmd}", flush=True)

    prepared = _apply_environment(cmd, _collect_runtime_env(env))
    handler = _RUN_HANDLERS.get(method)
    if handler is None:
        msg = f"Unknown run method: {method}"
        raise ValueError(msg)
    return handler(prepared, dict(run_kwargs))


def _call_handler(command: SupportsFormulate, run_kwargs: dict[str, object]) -> object:
    if not isinstance(command, SupportsCall):
        msg = "Command does not support call semantics"
        raise TypeError(msg)
    return command(**run_kwargs)


def _run_handler(
    command: SupportsFormulate, run_kwargs: dict[str, object]
) -> RunResult:
    if not isinstance(command, SupportsRun):
        msg = "Command does not support run()"
        raise TypeError(msg)
    run_kwargs.setdefault("retcode", None)
    returncode, stdout, stderr = typ.cast(
        "tuple[int, str | bytes | None, str | bytes | None]",
        command.run(**run_kwargs),
    )
    return RunResult(int(returncode), _ensure_text(stdout), _ensure_text(stderr))


def _tee_handler(
    command: SupportsFormulate, run_kwargs: dict[str, object]
) -> RunResult:
    if not isinstance(command, SupportsPopen):
        msg = "Command does not support popen()"
        raise TypeError(msg)
    sink = typ.cast("typ.TextIO", run_kwargs.pop("sink", None) or sys.stdout)
    captured: list[str] = []
    with command.popen(
        stdout=subprocess.PIPE, stderr=subprocess.STDOUT, **run_kwargs
    ) as proc:
        if proc.stdout is None:  # pragma: no cover - PIPE always sets stdout
            msg = "Command output stream is unavailable"
            raise RuntimeError(msg)
        for raw in proc.stdout:
            line = _ensure_text(raw)
            captured.append(line)
            sink.write(line)
            sink.flush()
        returncode = proc.wait()
    return RunResult(returncode, "".join(captured), "")


_MethodHandler = cabc.Callable[[SupportsFormulate, dict[str, object]], object]

_RUN_HANDLERS: dict[RunMethod, _MethodHandler] = {
    "call": _call_handler,
    "run": _run_handler,
    "tee": _tee_handler,
}


__all__ = [
    "RunMethod",
    "RunResult",
    "run_cmd",
]

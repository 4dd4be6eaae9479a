"""Action input handling.

GitHub exposes action inputs as ``INPUT_*`` environment variables and
forwards every value as a string. This module normalises the variable names,
coerces the boolean-like inputs and validates the resulting record before any
network or filesystem work begins.
"""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path

from .errors import ConfigurationError

__all__ = [
    "DEFAULT_TIMEOUT",
    "BuildInputs",
    "coerce_bool",
    "docker_config_path",
    "load_inputs",
    "normalize_input_env",
    "require_docker_credentials",
]

DEFAULT_TIMEOUT = "30m"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def normalize_input_env(prefix: str = "INPUT_") -> None:
    """Rewrite dashed input keys such as ``INPUT_PUSH-TO`` to ``INPUT_PUSH_TO``.

    Underscore keys that are already set win over their dashed variants. The
    dashed keys are removed from ``os.environ`` either way.
    """
    alt_prefix = prefix.replace("_", "-")
    updates: dict[str, str] = {}
    removals: list[str] = []
    for key, value in os.environ.items():
        if not key.startswith((prefix, alt_prefix)) or "-" not in key:
            continue
        normalized = key.replace("-", "_")
        if not os.environ.get(normalized):
            updates[normalized] = value
        removals.append(key)
    for key, value in updates.items():
        os.environ[key] = value
    for key in removals:
        os.environ.pop(key, None)


def coerce_bool(value: str | bool | None, *, parameter: str, default: bool) -> bool:
    """Interpret a GitHub input value as a boolean.

    Parameters
    ----------
    value
        Raw input value. ``None`` and blank strings fall back to ``default``.
    parameter
        Input name used in the error message.
    default
        Value used when the input is unset.

    Raises
    ------
    ConfigurationError
        If ``value`` is not a recognised boolean spelling.

    Examples
    --------
    >>> coerce_bool("TRUE", parameter="pull", default=False)
    True
    >>> coerce_bool("", parameter="cache", default=True)
    True
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    normalised = value.strip().lower()
    if not normalised:
        return default
    if normalised in _TRUTHY:
        return True
    if normalised in _FALSY:
        return False
    msg = f"Invalid value for '{parameter}': {value!r}. Expected a boolean-like string."
    raise ConfigurationError(msg)


@dataclasses.dataclass(frozen=True, slots=True)
class BuildInputs:
    """Validated inputs for a single action run."""

    file: str
    target: str
    access_token: str = dataclasses.field(repr=False)
    init: str = ""
    push_to: str = ""
    pull: bool = False
    cache: bool = True
    timeout: str = DEFAULT_TIMEOUT

    @property
    def push_destination(self) -> str:
        """Return the trimmed push destination, or an empty string."""
        return self.push_to.strip()


def load_inputs(  # noqa: PLR0913
    *,
    file: str,
    target: str,
    access_token: str,
    init: str = "",
    push_to: str = "",
    pull: str | bool = "false",
    cache: str | bool = "true",
    timeout: str = DEFAULT_TIMEOUT,
) -> BuildInputs:
    """Validate raw action inputs and return a :class:`BuildInputs`.

    Raises
    ------
    ConfigurationError
        If a required input or the access token is missing, or a boolean
        input cannot be interpreted.
    """
    if not file.strip():
        msg = "'file' input is required"
        raise ConfigurationError(msg)
    if not target.strip():
        msg = "'target' input is required"
        raise ConfigurationError(msg)
    if not access_token:
        msg = "RWX_ACCESS_TOKEN environment variable is required"
        raise ConfigurationError(msg)
    return BuildInputs(
        file=file,
        target=target,
        access_token=access_token,
        init=init,
        push_to=push_to,
        pull=coerce_bool(pull, parameter="pull", default=False),
        cache=coerce_bool(cache, parameter="cache", default=True),
        timeout=timeout.strip() or DEFAULT_TIMEOUT,
    )


def docker_config_path() -> Path:
    """Return the docker client configuration file used for registry logins."""
    if config_dir := os.environ.get("DOCKER_CONFIG"):
        return Path(config_dir) / "config.json"
    return Path.home() / ".docker" / "config.json"


def require_docker_credentials(config_path: Path | None = None) -> Path:
    """Ensure docker has been authenticated before pushing to a registry.

    Raises
    ------
    ConfigurationError
        If the docker configuration file is missing or empty.
    """
    path = config_path or docker_config_path()
    if not path.is_file() or path.stat().st_size == 0:
        msg = (
            f"Docker config not found at {path}. "
            "This usually means Docker was not authenticated to the registry. "
            "Please add a step before this one to authenticate using "
            "docker/login-action."
        )
        raise ConfigurationError(msg)
    return path

"""Translate the ``init`` and ``push-to`` inputs into ``rwx`` arguments."""

from __future__ import annotations

import json

__all__ = ["encode_init_params", "encode_push_to"]


def _render_value(value: object) -> str:
    """Render a JSON value the way jq string interpolation does."""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"))


def _decode_mapping(raw: str) -> dict[str, object] | None:
    try:
        decoded = json.loads(raw)
    except ValueError:
        return None
    return decoded if isinstance(decoded, dict) else None


def encode_init_params(raw: str | None) -> list[str]:
    """Return ``--init`` argument pairs for ``raw``.

    A JSON object yields one ``key=value`` pair per entry in document order.
    Anything else is read as a comma-separated list of literal tokens.

    Examples
    --------
    >>> encode_init_params('{"a": "1", "b": 2}')
    ['--init', 'a=1', '--init', 'b=2']
    >>> encode_init_params("a=1, b=2,,")
    ['--init', 'a=1', '--init', 'b=2']
    >>> encode_init_params("")
    []
    """
    if not raw or not raw.strip():
        return []

    if (mapping := _decode_mapping(raw)) is not None:
        tokens = [f"{key}={_render_value(value)}" for key, value in mapping.items()]
    else:
        tokens = [token.strip() for token in raw.split(",")]

    args: list[str] = []
    for token in tokens:
        if token:
            args.extend(("--init", token))
    return args


def encode_push_to(raw: str | None) -> list[str]:
    """Return the ``--push-to`` argument pair for ``raw``, if any.

    Examples
    --------
    >>> encode_push_to("  ghcr.io/acme/app:latest ")
    ['--push-to', 'ghcr.io/acme/app:latest']
    """
    destination = (raw or "").strip()
    return ["--push-to", destination] if destination else []

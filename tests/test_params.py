"""Tests for :mod:`rwx_action.params`."""

from __future__ import annotations

import pytest

from rwx_action.params import encode_init_params, encode_push_to


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ('{"a":"1","b":"2"}', ["--init", "a=1", "--init", "b=2"]),
        ("a=1, b=2", ["--init", "a=1", "--init", "b=2"]),
        ("", []),
        (None, []),
        ("   ", []),
    ],
)
def test_init_params(raw: str | None, expected: list[str]) -> None:
    """JSON objects and delimited lists encode to the same pairs."""
    assert encode_init_params(raw) == expected


def test_json_preserves_document_order() -> None:
    """Entries are emitted in the order they appear."""
    raw = '{"zeta": "z", "alpha": "a", "mid": "m"}'
    assert encode_init_params(raw) == [
        "--init",
        "zeta=z",
        "--init",
        "alpha=a",
        "--init",
        "mid=m",
    ]


def test_json_renders_non_string_values() -> None:
    """Numbers, booleans and null render as their JSON text."""
    raw = '{"n": 3, "flag": true, "none": null, "ratio": 0.5}'
    assert encode_init_params(raw) == [
        "--init",
        "n=3",
        "--init",
        "flag=true",
        "--init",
        "none=null",
        "--init",
        "ratio=0.5",
    ]


def test_delimited_drops_empty_tokens() -> None:
    """Blank tokens between commas are ignored and tokens are trimmed."""
    assert encode_init_params(" ref=main ,, sha=abc123 , ") == [
        "--init",
        "ref=main",
        "--init",
        "sha=abc123",
    ]


@pytest.mark.parametrize("raw", ['{"a": ', "[1, 2]", '"quoted"', "42"])
def test_non_object_json_uses_delimited_path(raw: str) -> None:
    """Malformed or non-object JSON falls through to the delimited reading."""
    expected = [
        item
        for token in raw.split(",")
        if token.strip()
        for item in ("--init", token.strip())
    ]
    assert encode_init_params(raw) == expected


def test_empty_json_object() -> None:
    """An empty object produces no arguments."""
    assert encode_init_params("{}") == []


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("ghcr.io/acme/app:latest", ["--push-to", "ghcr.io/acme/app:latest"]),
        ("  ghcr.io/acme/app:1.0  ", ["--push-to", "ghcr.io/acme/app:1.0"]),
        ("", []),
        ("   ", []),
        (None, []),
    ],
)
def test_push_to(raw: str | None, expected: list[str]) -> None:
    """A trimmed, non-empty destination becomes one --push-to pair."""
    assert encode_push_to(raw) == expected

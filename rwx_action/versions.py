"""Resolve the newest ``rwx`` CLI release for the supported major version.

The release index is the GitHub releases API for ``rwx-cloud/cli``. Failing to
reach or understand the index is not fatal: the resolver logs a warning and
falls back to :data:`FALLBACK_VERSION`. Reaching the index but finding no
matching release is fatal, since there is nothing sensible to install.

Two parsers extract tag names from the index body. Both feed the same
selection function, so ordering is identical regardless of the parser in use:
numeric comparison of the release components, never string comparison.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import re
import sys
import typing as typ

import httpx
from packaging.version import Version

from .errors import ReleaseIndexError, VersionResolutionError

__all__ = [
    "FALLBACK_VERSION",
    "MAJOR_PREFIX",
    "RELEASES_URL",
    "JsonReleaseParser",
    "PatternReleaseParser",
    "ReleaseParser",
    "ResolvedVersion",
    "fetch_release_index",
    "resolve_cli_version",
    "select_latest",
    "select_release_parser",
]

logger = logging.getLogger(__name__)

RELEASES_URL = "https://api.github.com/repos/rwx-cloud/cli/releases"
MAJOR_PREFIX = "v2."
FALLBACK_VERSION = "v2.1.0"

_REQUEST_TIMEOUT = 30.0
_RELEASE_TAG = re.compile(r"v\d+(?:\.\d+)*")
_TAG_NAME_PATTERN = re.compile(r'"tag_name"\s*:\s*"(v\d+(?:\.\d+)*)"')


class ReleaseParser(typ.Protocol):
    """Extract release tag names from a release index body."""

    name: str

    def tags(self, body: str) -> list[str]:
        """Return every tag name in ``body``.

        Raises
        ------
        ReleaseIndexError
            If ``body`` cannot be interpreted as a release index.
        """
        ...


class JsonReleaseParser:
    """Decode the index as a JSON array of release objects."""

    name = "json"

    def tags(self, body: str) -> list[str]:  # noqa: D102
        try:
            releases = json.loads(body)
        except ValueError as exc:
            msg = f"release index is not valid JSON: {exc}"
            raise ReleaseIndexError(msg) from exc
        if not isinstance(releases, list):
            msg = f"release index must be a JSON array, got {type(releases).__name__}"
            raise ReleaseIndexError(msg)
        return [
            release["tag_name"]
            for release in releases
            if isinstance(release, dict) and isinstance(release.get("tag_name"), str)
        ]


class PatternReleaseParser:
    """Scan the raw index text for ``"tag_name": "vX.Y.Z"`` fields."""

    name = "pattern"

    def tags(self, body: str) -> list[str]:  # noqa: D102
        if not body.lstrip().startswith("["):
            msg = "release index does not look like a list of releases"
            raise ReleaseIndexError(msg)
        return _TAG_NAME_PATTERN.findall(body)


_PARSERS: dict[str, type[JsonReleaseParser] | type[PatternReleaseParser]] = {
    JsonReleaseParser.name: JsonReleaseParser,
    PatternReleaseParser.name: PatternReleaseParser,
}


def select_release_parser(name: str | None = None) -> ReleaseParser:
    """Return the parser named by ``name`` or ``RWX_RELEASE_PARSER``.

    Unknown names fall back to the JSON parser with a warning.
    """
    choice = (name or os.environ.get("RWX_RELEASE_PARSER") or "json").strip().lower()
    parser_cls = _PARSERS.get(choice)
    if parser_cls is None:
        print(
            f"::warning::Unknown release parser {choice!r}; using json",
            file=sys.stderr,
        )
        parser_cls = JsonReleaseParser
    return parser_cls()


def _final_release(tag: str, prefix: str) -> Version | None:
    """Return the parsed version for ``tag`` when it is a final release.

    Only plain dotted numeric tags count, so both release parsers see the
    same candidates.
    """
    if not tag.startswith(prefix) or not _RELEASE_TAG.fullmatch(tag):
        return None
    return Version(tag.removeprefix("v"))


def select_latest(tags: typ.Iterable[str], prefix: str = MAJOR_PREFIX) -> str:
    """Return the highest tag in ``tags`` that starts with ``prefix``.

    Examples
    --------
    >>> select_latest(["v2.1.0", "v2.9.0", "v2.10.0", "v1.9.9"])
    'v2.10.0'

    Raises
    ------
    VersionResolutionError
        If no tag matches ``prefix``.
    """
    candidates = [
        (parsed.release, tag)
        for tag in tags
        if (parsed := _final_release(tag, prefix)) is not None
    ]
    if not candidates:
        msg = f"No rwx CLI release matches {prefix}*"
        raise VersionResolutionError(msg)
    candidates.sort(key=lambda item: item[0])
    return candidates[-1][1]


@dataclasses.dataclass(frozen=True, slots=True)
class ResolvedVersion:
    """Release chosen for installation and where it came from."""

    tag: str
    source: typ.Literal["index", "fallback"]


def fetch_release_index(
    url: str = RELEASES_URL,
    *,
    token: str | None = None,
    transport: httpx.BaseTransport | None = None,
) -> str:
    """Return the raw release index body.

    Raises
    ------
    ReleaseIndexError
        If the request fails or returns a non-success status.
    """
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": "rwx-build-push-action",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    try:
        with httpx.Client(
            timeout=httpx.Timeout(_REQUEST_TIMEOUT),
            headers=headers,
            transport=transport,
        ) as client:
            response = client.get(url, follow_redirects=True)
    except httpx.HTTPError as exc:
        msg = f"Could not reach {url}: {exc}"
        raise ReleaseIndexError(msg) from exc
    if not response.is_success:
        msg = f"{url} returned HTTP {response.status_code}"
        raise ReleaseIndexError(msg)
    return response.text


def resolve_cli_version(
    *,
    parser: ReleaseParser | None = None,
    url: str = RELEASES_URL,
    prefix: str = MAJOR_PREFIX,
    fallback: str = FALLBACK_VERSION,
    token: str | None = None,
    transport: httpx.BaseTransport | None = None,
) -> ResolvedVersion:
    """Resolve the newest release matching ``prefix``.

    Raises
    ------
    VersionResolutionError
        If the index was read but holds no release matching ``prefix``.
    """
    parser = parser or JsonReleaseParser()
    try:
        body = fetch_release_index(url, token=token, transport=transport)
        tags = parser.tags(body)
    except ReleaseIndexError as exc:
        print(
            "::warning::Could not fetch releases from GitHub API "
            f"({exc}), falling back to {fallback}",
            file=sys.stderr,
        )
        return ResolvedVersion(tag=fallback, source="fallback")

    logger.debug("Release index lists %d tag(s) via %s parser", len(tags), parser.name)
    return ResolvedVersion(tag=select_latest(tags, prefix), source="index")

"""Extract structured results from ``rwx image build`` output.

The CLI prints free-form text. :class:`OutputFormat` is the single contract
describing how an image reference and a run URL appear in that text for a
given CLI major version; callers only see :class:`BuildResult`.
"""

from __future__ import annotations

import dataclasses
import re

__all__ = [
    "RWX_V2_OUTPUT",
    "BuildResult",
    "OutputFormat",
    "extract_build_result",
]


@dataclasses.dataclass(frozen=True, slots=True)
class OutputFormat:
    """Patterns locating build results in the CLI output."""

    cli_major: str
    image_reference: re.Pattern[str]
    run_url: re.Pattern[str]

    def find_image_reference(self, text: str) -> str | None:
        """Return the first image reference in ``text``."""
        match = self.image_reference.search(text)
        return match.group(0) if match else None

    def find_run_url(self, text: str) -> str | None:
        """Return the first run URL in ``text``."""
        match = self.run_url.search(text)
        return match.group(0) if match else None


RWX_V2_OUTPUT = OutputFormat(
    cli_major="v2",
    image_reference=re.compile(r"cloud\.rwx\.com/[^/:\n]+:[a-f0-9]{32}(?![a-f0-9])"),
    run_url=re.compile(r"https://cloud\.rwx\.com/\S+"),
)


@dataclasses.dataclass(frozen=True, slots=True)
class BuildResult:
    """Captured build output and the values derived from it."""

    raw_output: str
    image_reference: str | None = None
    run_url: str | None = None

    def as_json(self) -> dict[str, str]:
        """Return the ``json`` output payload; absent fields are empty strings."""
        return {
            "image_reference": self.image_reference or "",
            "run_url": self.run_url or "",
            "raw_output": self.raw_output,
        }


def extract_build_result(
    output: str,
    push_to: str | None = None,
    output_format: OutputFormat = RWX_V2_OUTPUT,
) -> BuildResult:
    """Build a :class:`BuildResult` from captured ``output``.

    A non-empty ``push_to`` is reported as the image reference in place of
    whatever the output mentions.

    Examples
    --------
    >>> digest = "0123456789abcdef0123456789abcdef"
    >>> result = extract_build_result(f"Built cloud.rwx.com/rwx:{digest}\\n")
    >>> result.image_reference
    'cloud.rwx.com/rwx:0123456789abcdef0123456789abcdef'
    """
    destination = (push_to or "").strip()
    return BuildResult(
        raw_output=output,
        image_reference=destination or output_format.find_image_reference(output),
        run_url=output_format.find_run_url(output),
    )

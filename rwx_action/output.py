"""Writers for the GitHub Actions runner files.

``GITHUB_OUTPUT`` receives step outputs, ``GITHUB_PATH`` receives directories
to prepend to ``PATH`` for later steps and ``GITHUB_STEP_SUMMARY`` receives
markdown rendered on the run page.
"""

from __future__ import annotations

import json
import typing as typ
import uuid

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .extract import BuildResult

__all__ = [
    "append_github_path",
    "prepare_outputs",
    "render_summary",
    "write_github_output",
    "write_step_summary",
]


def _format_multiline_output(key: str, value: str) -> str:
    """Format ``value`` with heredoc syntax using a collision-free delimiter."""
    delimiter = f"gh_{key.upper().replace('-', '_')}_{uuid.uuid4().hex}"
    return f"{key}<<{delimiter}\n{value}\n{delimiter}\n"


def write_github_output(file: Path, values: dict[str, str]) -> None:
    """Append ``values`` to the GitHub Actions output ``file``.

    Single-line values are written as ``key=value``; values containing a
    newline use the heredoc form so they survive verbatim.
    """
    file.parent.mkdir(parents=True, exist_ok=True)
    with file.open("a", encoding="utf-8") as handle:
        for key, value in values.items():
            if "\n" in value or "\r" in value:
                handle.write(_format_multiline_output(key, value))
            else:
                handle.write(f"{key}={value}\n")


def prepare_outputs(result: BuildResult) -> dict[str, str]:
    """Return the step outputs for ``result``, omitting absent fields."""
    values: dict[str, str] = {}
    if result.image_reference:
        values["image-reference"] = result.image_reference
    if result.run_url:
        values["run-url"] = result.run_url
    values["json"] = json.dumps(result.as_json(), indent=2)
    return values


def append_github_path(file: Path, directory: Path) -> None:
    """Add ``directory`` to ``GITHUB_PATH`` for subsequent steps."""
    file.parent.mkdir(parents=True, exist_ok=True)
    with file.open("a", encoding="utf-8") as handle:
        handle.write(f"{directory}\n")


def render_summary(result: BuildResult, *, version: str) -> str:
    """Return a markdown summary of the build."""
    lines = [
        "## rwx image build\n",
        f"- CLI version: `{version}`\n",
        f"- Image reference: `{result.image_reference or 'n/a'}`\n",
    ]
    if result.run_url:
        lines.append(f"- Run: {result.run_url}\n")
    return "".join(lines)


def write_step_summary(file: Path, content: str) -> None:
    """Append ``content`` to ``GITHUB_STEP_SUMMARY``, separated from prior text."""
    prefix = "\n" if file.exists() and file.stat().st_size > 0 else ""
    with file.open("a", encoding="utf-8") as handle:
        handle.write(prefix + content)

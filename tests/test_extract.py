"""Tests for :mod:`rwx_action.extract`."""

from __future__ import annotations

import pytest

from rwx_action.extract import RWX_V2_OUTPUT, BuildResult, extract_build_result

DIGEST = "0123456789abcdef0123456789abcdef"


class TestImageReferencePattern:
    """Tests for the image reference part of the output contract."""

    def test_matches_32_hex_digest(self) -> None:
        """A 32 character digest is a match."""
        text = f"pushed cloud.rwx.com/foo:{DIGEST} ok"
        assert RWX_V2_OUTPUT.find_image_reference(text) == f"cloud.rwx.com/foo:{DIGEST}"

    @pytest.mark.parametrize("digest", [DIGEST[:31], DIGEST + "a"], ids=["31", "33"])
    def test_rejects_other_lengths(self, digest: str) -> None:
        """31 and 33 character digests are not image references."""
        assert RWX_V2_OUTPUT.find_image_reference(f"cloud.rwx.com/foo:{digest}") is None

    def test_rejects_nested_paths(self) -> None:
        """The repository part cannot contain a slash."""
        text = f"cloud.rwx.com/org/foo:{DIGEST}"
        assert RWX_V2_OUTPUT.find_image_reference(text) is None

    def test_rejects_uppercase_digest(self) -> None:
        """Digests are lowercase hex."""
        text = f"cloud.rwx.com/foo:{DIGEST.upper()}"
        assert RWX_V2_OUTPUT.find_image_reference(text) is None

    def test_does_not_span_lines(self) -> None:
        """A match never continues onto the next line."""
        text = f"cloud.rwx.com/foo\nbar:{DIGEST}"
        assert RWX_V2_OUTPUT.find_image_reference(text) is None

    def test_first_match_wins(self) -> None:
        """The first reference in document order is reported."""
        other = "f" * 32
        text = f"cloud.rwx.com/first:{DIGEST}\ncloud.rwx.com/second:{other}\n"
        assert RWX_V2_OUTPUT.find_image_reference(text) == (
            f"cloud.rwx.com/first:{DIGEST}"
        )


class TestRunUrlPattern:
    """Tests for the run URL part of the output contract."""

    def test_stops_at_whitespace(self) -> None:
        """The URL ends at the first whitespace character."""
        text = "See https://cloud.rwx.com/runs/42 for details"
        assert RWX_V2_OUTPUT.find_run_url(text) == "https://cloud.rwx.com/runs/42"

    def test_requires_https_and_host(self) -> None:
        """Other hosts and plain http are ignored."""
        text = "http://cloud.rwx.com/runs/1 https://example.com/runs/2"
        assert RWX_V2_OUTPUT.find_run_url(text) is None


class TestExtractBuildResult:
    """Tests for extract_build_result."""

    def test_end_to_end_output(self) -> None:
        """Both fields are extracted from a typical build log."""
        output = (
            "Building task app...\n"
            f"Built cloud.rwx.com/rwx:{DIGEST}\n"
            "https://cloud.rwx.com/runs/42\n"
        )
        result = extract_build_result(output)

        assert result == BuildResult(
            raw_output=output,
            image_reference=f"cloud.rwx.com/rwx:{DIGEST}",
            run_url="https://cloud.rwx.com/runs/42",
        )

    def test_push_destination_takes_precedence(self) -> None:
        """The trimmed push destination replaces the extracted reference."""
        output = f"Built cloud.rwx.com/rwx:{DIGEST}\n"
        result = extract_build_result(output, push_to="  ghcr.io/acme/app:1.0 ")
        assert result.image_reference == "ghcr.io/acme/app:1.0"

    def test_blank_push_destination_is_ignored(self) -> None:
        """A whitespace-only destination does not mask the extracted value."""
        output = f"Built cloud.rwx.com/rwx:{DIGEST}\n"
        result = extract_build_result(output, push_to="   ")
        assert result.image_reference == f"cloud.rwx.com/rwx:{DIGEST}"

    def test_absent_fields(self) -> None:
        """Missing patterns give absent fields rather than errors."""
        result = extract_build_result("nothing to see here\n")
        assert result.image_reference is None
        assert result.run_url is None

    def test_as_json(self) -> None:
        """Absent fields serialise as empty strings next to the raw output."""
        result = BuildResult(raw_output="log", run_url="https://cloud.rwx.com/runs/1")
        assert result.as_json() == {
            "image_reference": "",
            "run_url": "https://cloud.rwx.com/runs/1",
            "raw_output": "log",
        }

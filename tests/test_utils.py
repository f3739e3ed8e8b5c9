"""Tests for utils.py module.

Tests metadata parsing, default naming, URL formatting and result output.
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from rich.console import Console

from shot.models import ApiError, UploadedImage, UploadResult
from shot.utils import (
    copy_to_clipboard,
    default_image_name,
    format_file_size,
    format_html_url,
    format_markdown_url,
    format_rfc3339,
    parse_metadata,
    render_result,
    variant_name,
)


URL = "https://imagedelivery.net/hash/abc/public"


class TestParseMetadata:
    """Tests for parse_metadata function."""

    def test_parses_pairs(self):
        """Should build a mapping from K=V items."""
        assert parse_metadata(["a=1", "b=2"]) == {"a": "1", "b": "2"}

    def test_later_key_wins(self):
        """Adding the same key twice keeps only the latter value."""
        assert parse_metadata(["k=first", "k=second"]) == {"k": "second"}

    def test_splits_on_first_equals(self):
        """Values may contain '='."""
        assert parse_metadata(["query=a=b"]) == {"query": "a=b"}

    def test_empty_value(self):
        """An empty value is allowed."""
        assert parse_metadata(["k="]) == {"k": ""}

    def test_rejects_missing_equals(self):
        """Should raise ValueError without '='."""
        with pytest.raises(ValueError):
            parse_metadata(["novalue"])


class TestDefaultImageName:
    """Tests for default_image_name function."""

    def test_rfc3339_seconds(self):
        """Should name after UTC time in seconds precision."""
        now = datetime(2021, 12, 20, 1, 1, 1, 999, tzinfo=timezone.utc)

        assert default_image_name(now) == "2021-12-20T01:01:01Z.png"

    def test_converts_to_utc(self):
        """Should normalize other offsets to UTC."""
        now = datetime(2021, 12, 20, 3, 1, 1, tzinfo=timezone(timedelta(hours=2)))

        assert default_image_name(now) == "2021-12-20T01:01:01Z.png"


class TestFormatting:
    """Tests for URL and size formatting."""

    def test_markdown(self):
        assert format_markdown_url(URL, "cat.png") == f"![cat.png]({URL})"

    def test_html(self):
        assert format_html_url(URL, "cat.png") == f'<img alt="cat.png" src="{URL}" />'

    def test_variant_name(self):
        """Should use the last path segment."""
        assert variant_name(URL) == "public"
        assert variant_name("https://imagedelivery.net/") == "UNKNOWN"

    def test_format_rfc3339(self):
        dt = datetime(2021, 12, 20, 1, 1, 1, tzinfo=timezone.utc)

        assert format_rfc3339(dt) == "2021-12-20T01:01:01Z"

    def test_file_size(self):
        assert format_file_size(512) == "512.0 B"
        assert format_file_size(1536) == "1.5 KB"
        assert format_file_size(10_000_000) == "9.5 MB"


class TestCopyToClipboard:
    """Tests for copy_to_clipboard function."""

    @patch('shot.utils.pyperclip.copy')
    def test_copies_text(self, mock_copy):
        assert copy_to_clipboard(URL) is True
        mock_copy.assert_called_once_with(URL)

    @patch('shot.utils.pyperclip.copy')
    def test_reports_failure(self, mock_copy):
        """Should return False when no clipboard mechanism exists."""
        import pyperclip
        mock_copy.side_effect = pyperclip.PyperclipException("no clipboard")

        assert copy_to_clipboard(URL) is False


class TestRenderResult:
    """Tests for render_result function."""

    def test_prints_variants(self, capsys):
        """Should print the URL in plain, HTML and Markdown forms."""
        result = UploadResult(
            success=True,
            result=UploadedImage(
                id="abc",
                filename="cat.png",
                require_signed_urls=False,
                uploaded=datetime(2021, 12, 20, 1, 1, 1, tzinfo=timezone.utc),
                variants=[URL],
                meta={"source": "clipboard"},
            ),
        )

        with patch('shot.utils.console', Console(width=400)):
            render_result(result)
        output = capsys.readouterr().out

        assert "abc" in output
        assert URL in output
        assert f"![cat.png]({URL})" in output
        assert "source" in output

    def test_prints_errors(self, capsys):
        """Should list every API error with its code."""
        result = UploadResult(
            success=False,
            errors=[ApiError(code=5403, message="Invalid token")],
        )

        render_result(result)
        output = capsys.readouterr().out

        assert "5403" in output
        assert "Invalid token" in output

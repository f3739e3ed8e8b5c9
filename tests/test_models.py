"""Tests for models.py module.

Tests parsing of API responses and metadata serialization.
"""

import json
import pytest
from datetime import datetime, timezone

from shot.models import ApiError, UploadedImage, UploadResult, UploadRequest


@pytest.fixture
def image_record():
    """Image record as returned by Cloudflare."""
    return {
        "id": "abc",
        "filename": "cat.png",
        "requireSignedURLs": True,
        "uploaded": "2021-12-20T01:01:01Z",
        "variants": ["https://imagedelivery.net/hash/abc/public"],
    }


class TestUploadedImage:
    """Tests for UploadedImage.from_dict."""

    def test_parses_rfc3339_timestamp(self, image_record):
        """Should parse the upload time as an aware datetime."""
        image = UploadedImage.from_dict(image_record)

        assert image.uploaded == datetime(2021, 12, 20, 1, 1, 1, tzinfo=timezone.utc)

    def test_parses_fractional_seconds(self, image_record):
        """Should accept fractional seconds."""
        image_record["uploaded"] = "2022-01-31T16:39:28.458Z"

        assert UploadedImage.from_dict(image_record).uploaded.microsecond == 458000

    def test_missing_meta_is_none(self, image_record):
        """meta is optional."""
        image = UploadedImage.from_dict(image_record)

        assert image.meta is None
        assert image.require_signed_urls is True

    def test_rejects_bad_timestamp(self, image_record):
        """Should raise ValueError on non-RFC 3339 text."""
        image_record["uploaded"] = "yesterday"

        with pytest.raises(ValueError):
            UploadedImage.from_dict(image_record)

    @pytest.mark.parametrize("field,value", [
        ("variants", "https://imagedelivery.net/hash/abc/public"),
        ("variants", ["/hash/abc/public"]),
        ("variants", [42]),
        ("requireSignedURLs", "false"),
        ("requireSignedURLs", 0),
        ("id", 123),
        ("filename", None),
        ("meta", ["k", "v"]),
        ("meta", {"k": 1}),
    ])
    def test_rejects_mistyped_fields(self, image_record, field, value):
        """Should not coerce fields of the wrong type."""
        image_record[field] = value

        with pytest.raises(TypeError):
            UploadedImage.from_dict(image_record)

    def test_keeps_signed_flag_false(self, image_record):
        """A real false stays false."""
        image_record["requireSignedURLs"] = False

        assert UploadedImage.from_dict(image_record).require_signed_urls is False


class TestUploadResult:
    """Tests for UploadResult.from_dict."""

    def test_nullable_fields(self):
        """result, result_info and messages may be absent or null."""
        result = UploadResult.from_dict({
            "success": False,
            "result": None,
            "errors": [{"code": 5403, "message": "Invalid token"}],
        })

        assert result.result is None
        assert result.result_info is None
        assert result.messages is None
        assert result.errors == [ApiError(code=5403, message="Invalid token")]

    def test_errors_are_required(self):
        """A body without errors does not match the schema."""
        with pytest.raises(KeyError):
            UploadResult.from_dict({"success": True})

    def test_success_must_be_boolean(self):
        """Should reject a non-boolean success flag."""
        with pytest.raises(TypeError):
            UploadResult.from_dict({"success": "yes", "errors": []})

    def test_error_code_must_be_integer(self):
        """Should reject a non-integer error code."""
        with pytest.raises(TypeError):
            UploadResult.from_dict({"success": False, "errors": [{"code": "x", "message": "m"}]})


class TestMetadataSerialization:
    """Metadata travels as a JSON object of strings."""

    @pytest.mark.parametrize("metadata", [
        {},
        {"k": "v"},
        {"source": "clipboard", "note": "a=b", "unicode": "snow ☃"},
    ])
    def test_round_trips_through_json(self, metadata):
        """deserialize(serialize(m)) == m"""
        request = UploadRequest(filename="a.png", data=b"", metadata=metadata)

        assert json.loads(json.dumps(request.metadata)) == metadata

    def test_default_metadata_is_not_shared(self):
        """Each request gets its own mapping."""
        first = UploadRequest(filename="a.png", data=b"")
        second = UploadRequest(filename="b.png", data=b"")
        first.metadata["k"] = "v"

        assert second.metadata == {}

"""Data models for shot.

Contains data classes for credentials, upload requests and the parsed
Cloudflare Images API response.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from urllib.parse import urlparse


def _is_absolute_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@dataclass(frozen=True)
class Credentials:
    """Cloudflare account credentials.

    Attributes:
        account_id: Cloudflare account ID
        token: API token with Images write permission
    """
    account_id: str
    token: str


@dataclass
class UploadRequest:
    """Everything needed to upload one image.

    Attributes:
        filename: Filename reported to Cloudflare
        data: PNG bytes to upload
        require_signed_urls: Whether variants need signed URLs (default: False)
        metadata: User key-value pairs bound to the image (default: empty)
    """
    filename: str
    data: bytes
    require_signed_urls: bool = False
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class ApiError:
    """An error entry in an API response."""
    code: int
    message: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ApiError":
        code = data["code"]
        if not isinstance(code, int) or isinstance(code, bool):
            raise TypeError(f"error code must be an integer, got {code!r}")
        return cls(code=code, message=str(data["message"]))


@dataclass
class UploadedImage:
    """An image record returned by Cloudflare Images.

    Attributes:
        id: Image ID
        filename: Filename as stored by Cloudflare
        require_signed_urls: Whether variants need signed URLs
        uploaded: Upload time
        variants: Absolute URLs of every variant
        meta: Metadata echoed back, if any
    """
    id: str
    filename: str
    require_signed_urls: bool
    uploaded: datetime
    variants: list[str] = field(default_factory=list)
    meta: Optional[dict[str, str]] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UploadedImage":
        """Build an image record from the decoded JSON object.

        Raises:
            KeyError, TypeError, ValueError: If the record does not match the schema
        """
        if not isinstance(data, dict):
            raise TypeError("result must be a JSON object")

        for name in ("id", "filename"):
            if not isinstance(data[name], str):
                raise TypeError(f"{name} must be a string, got {data[name]!r}")

        signed = data["requireSignedURLs"]
        if not isinstance(signed, bool):
            raise TypeError(f"requireSignedURLs must be a boolean, got {signed!r}")

        uploaded = data["uploaded"]
        if not isinstance(uploaded, str):
            raise TypeError(f"uploaded must be an RFC 3339 string, got {uploaded!r}")

        variants = data["variants"]
        if not isinstance(variants, list) or not all(_is_absolute_url(v) for v in variants):
            raise TypeError(f"variants must be a list of absolute URLs, got {variants!r}")

        meta = data.get("meta")
        if meta is not None and not (
            isinstance(meta, dict)
            and all(isinstance(k, str) and isinstance(v, str) for k, v in meta.items())
        ):
            raise TypeError(f"meta must map strings to strings, got {meta!r}")

        return cls(
            id=data["id"],
            filename=data["filename"],
            require_signed_urls=signed,
            uploaded=datetime.fromisoformat(uploaded),
            variants=list(variants),
            meta=dict(meta) if meta is not None else None,
        )


@dataclass
class UploadResult:
    """Parsed response of an upload call.

    A result with ``success`` set to False is a normal value: the API
    accepted the request and reported why it refused it in ``errors``.
    """
    success: bool
    result: Optional[UploadedImage] = None
    result_info: Optional[str] = None
    messages: Optional[list[str]] = None
    errors: list[ApiError] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UploadResult":
        """Build a result from the decoded JSON body.

        Raises:
            KeyError, TypeError, ValueError: If the body does not match the schema
        """
        if not isinstance(data, dict):
            raise TypeError("response body must be a JSON object")

        success = data["success"]
        if not isinstance(success, bool):
            raise TypeError(f"success must be a boolean, got {success!r}")

        result = data.get("result")
        messages = data.get("messages")
        return cls(
            success=success,
            result=UploadedImage.from_dict(result) if result is not None else None,
            result_info=data.get("result_info"),
            messages=[str(m) for m in messages] if messages is not None else None,
            errors=[ApiError.from_dict(e) for e in data["errors"]],
        )

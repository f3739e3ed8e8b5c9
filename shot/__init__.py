"""shot - Upload images from the clipboard or disk to Cloudflare Images.

Normalizes images to PNG, shrinks oversized ones to fit the host's size
limit, and prints the resulting variant URLs.
"""

__version__ = "0.1.0"

from .models import Credentials, UploadRequest, UploadResult, UploadedImage, ApiError

__all__ = [
    "__version__",
    "Credentials",
    "UploadRequest",
    "UploadResult",
    "UploadedImage",
    "ApiError",
]

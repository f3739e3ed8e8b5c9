"""Image decoding, PNG encoding and size fitting for shot.

Handles reading images from the clipboard or disk, lossless PNG encoding,
and the single-pass downscale that brings a payload under the host's
size limit.
"""

import io
import logging
import math
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageGrab, UnidentifiedImageError

from .utils import format_file_size

logger = logging.getLogger(__name__)

# 8-bit modes written to PNG as-is; anything else is converted first
PNG_MODES = {"RGBA", "RGB", "LA", "L"}


class DecodeError(Exception):
    """Raised when a local image cannot be read or decoded."""
    pass


class ClipboardError(Exception):
    """Raised when the clipboard holds no usable image."""
    pass


class EncodeError(Exception):
    """Raised when pixels cannot be encoded to PNG or resized.

    Attributes:
        kind: 'unsupported' for pixel/geometry mismatches, 'io' for writer failures
    """
    UNSUPPORTED = "unsupported"
    IO = "io"

    def __init__(self, message: str, kind: str = UNSUPPORTED):
        super().__init__(message)
        self.kind = kind


@dataclass
class DecodedImage:
    """An in-memory raster image.

    Attributes:
        width: Width in pixels
        height: Height in pixels
        pixels: Raw 8-bit pixel buffer, row-major
        mode: Pillow mode of the buffer (default: RGBA)
    """
    width: int
    height: int
    pixels: bytes
    mode: str = "RGBA"

    @classmethod
    def from_pil(cls, image: Image.Image) -> "DecodedImage":
        """Capture a Pillow image, converting modes PNG cannot hold as-is."""
        if image.mode not in PNG_MODES:
            has_alpha = "A" in image.mode or "transparency" in image.info
            image = image.convert("RGBA" if has_alpha else "RGB")
        width, height = image.size
        return cls(width=width, height=height, pixels=image.tobytes(), mode=image.mode)

    def to_pil(self) -> Image.Image:
        """Interpret the pixel buffer as a Pillow image.

        Raises:
            EncodeError: If the buffer does not match the declared geometry
        """
        if self.mode not in PNG_MODES:
            raise EncodeError(f"Unsupported pixel mode: {self.mode}")

        expected = self.width * self.height * Image.getmodebands(self.mode)
        if len(self.pixels) != expected:
            raise EncodeError(
                f"Pixel buffer holds {len(self.pixels)} bytes, "
                f"expected {expected} for {self.width} x {self.height} {self.mode}"
            )
        if self.width <= 0 or self.height <= 0:
            raise EncodeError(f"Invalid image dimensions: {self.width} x {self.height}")

        return Image.frombytes(self.mode, (self.width, self.height), self.pixels)


@dataclass
class EncodedPayload:
    """PNG bytes ready for upload.

    Attributes:
        data: PNG-encoded bytes
        width: Width of the encoded image
        height: Height of the encoded image
        resized: Whether the image was shrunk to fit
    """
    data: bytes
    width: int
    height: int
    resized: bool = False

    @property
    def size(self) -> int:
        return len(self.data)


def decode_file(input_path: Path) -> DecodedImage:
    """Open and decode a local image file.

    Args:
        input_path: Path to an image in any format Pillow can read

    Returns:
        DecodedImage holding the full pixel buffer

    Raises:
        DecodeError: If the file is missing, unreadable or not a supported image
    """
    try:
        with Image.open(input_path) as image:
            image.load()
            return DecodedImage.from_pil(image)
    except FileNotFoundError as e:
        raise DecodeError(f"File not found: {input_path}") from e
    except UnidentifiedImageError as e:
        raise DecodeError(f"Unsupported image format: {input_path}") from e
    except (OSError, ValueError) as e:
        raise DecodeError(f"Failed to decode {input_path}: {e}") from e


def grab_clipboard() -> DecodedImage:
    """Read the image currently held by the system clipboard.

    If the clipboard holds copied files instead of pixels, the first
    file is decoded.

    Raises:
        ClipboardError: If the clipboard is unavailable or holds no image
    """
    try:
        content = ImageGrab.grabclipboard()
    except (NotImplementedError, OSError) as e:
        raise ClipboardError(f"Unable to read clipboard: {e}") from e

    if content is None:
        raise ClipboardError("No image found in clipboard")

    if isinstance(content, list):
        if not content:
            raise ClipboardError("No image found in clipboard")
        try:
            return decode_file(Path(content[0]))
        except DecodeError as e:
            raise ClipboardError(f"Clipboard file is not an image: {e}") from e

    with content:
        return DecodedImage.from_pil(content)


def encode_png(image: Image.Image) -> bytes:
    """Encode a Pillow image losslessly to PNG.

    Raises:
        EncodeError: If the image cannot be written
    """
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except OSError as e:
        raise EncodeError(f"Unable to encode image: {e}", kind=EncodeError.IO) from e
    except ValueError as e:
        raise EncodeError(f"Unable to encode image: {e}") from e
    return buffer.getvalue()


def resize_dimensions(
    original_size: tuple[int, int],
    encoded_len: int,
    target: int,
) -> tuple[int, int]:
    """Calculate the shrunken dimensions for an oversized payload.

    The linear ratio is sqrt(encoded_len / target); each axis is divided
    by it and floored on its own, so the aspect ratio may drift by a pixel.

    Args:
        original_size: Original (width, height)
        encoded_len: Byte length of the oversized encoding
        target: Reference byte size to aim for

    Returns:
        Target (width, height)
    """
    width, height = original_size
    ratio = math.sqrt(encoded_len / target)
    logger.debug("Resize ratio: %s", ratio)
    return (math.floor(width / ratio), math.floor(height / ratio))


def fit(image: DecodedImage, hard_limit: int, target: int) -> EncodedPayload:
    """Encode an image to PNG, shrinking it once if it exceeds hard_limit.

    Only one resize pass is made. The ratio estimate is trusted and the
    re-encoded payload is returned even if it is still over hard_limit.

    Args:
        image: Decoded source image
        hard_limit: Largest acceptable payload in bytes
        target: Reference byte size used to compute the shrink ratio

    Returns:
        EncodedPayload with the PNG bytes and final dimensions

    Raises:
        EncodeError: On pixel/geometry mismatch or writer failure
    """
    source = image.to_pil()
    data = encode_png(source)

    if len(data) <= hard_limit:
        return EncodedPayload(data=data, width=image.width, height=image.height)

    logger.info("Image too big (%s), resizing", format_file_size(len(data)))
    width, height = resize_dimensions(source.size, len(data), target)
    if width <= 0 or height <= 0:
        raise EncodeError(
            f"Cannot shrink {image.width} x {image.height} to {width} x {height}"
        )

    resized = source.resize((width, height), Image.Resampling.LANCZOS)
    data = encode_png(resized)
    return EncodedPayload(data=data, width=width, height=height, resized=True)

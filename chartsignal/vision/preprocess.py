from __future__ import annotations

import base64
import io
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
ALLOWED_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")

MAX_WIDTH = 1920
MAX_HEIGHT = 1080
JPEG_QUALITY = 0.85
MAX_SIZE_MB = 5.0


class ImageUploadError(ValueError):
    """Upload is not a chart screenshot we can send to the model."""


@dataclass
class ProcessedImage:
    jpeg: bytes
    data_url: str
    width: int
    height: int
    original_size: str
    compressed_size: str

    def as_meta(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "original_size": self.original_size,
            "compressed_size": self.compressed_size,
        }


def validate_image_upload(data: bytes, content_type: Optional[str]) -> None:
    ctype = (content_type or "").lower()
    if not ctype.startswith("image/"):
        raise ImageUploadError("File must be an image")

    if len(data) > MAX_UPLOAD_BYTES:
        raise ImageUploadError(f"File size must be less than {MAX_UPLOAD_BYTES // (1024 * 1024)}MB")

    if ctype not in ALLOWED_TYPES:
        raise ImageUploadError("Only JPEG, PNG, and WebP images are supported")


def _open(data: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageUploadError("Invalid image format. Please upload a valid chart screenshot.") from e
    return img


def image_dimensions(data: bytes) -> Tuple[int, int]:
    return _open(data).size


def fit_within(width: int, height: int, max_width: int, max_height: int) -> Tuple[int, int]:
    """Scale (width, height) down to fit the box, keeping aspect ratio. Never upscales."""
    if width <= max_width and height <= max_height:
        return width, height
    ratio = min(max_width / width, max_height / height)
    return max(1, math.floor(width * ratio)), max(1, math.floor(height * ratio))


def _encode_jpeg(img: Image.Image, quality: float) -> bytes:
    out = io.BytesIO()
    img.save(out, format="JPEG", quality=max(1, min(95, round(quality * 100))), optimize=True)
    return out.getvalue()


def compress_image(
    data: bytes,
    *,
    max_width: int = MAX_WIDTH,
    max_height: int = MAX_HEIGHT,
    quality: float = JPEG_QUALITY,
    max_size_mb: float = MAX_SIZE_MB,
) -> bytes:
    """
    Chart screenshot -> JPEG small enough to send inline:
    - convert to RGB
    - downscale into max_width x max_height
    - one retry at 70% quality if still over max_size_mb
    """
    img = _open(data).convert("RGB")

    size = fit_within(img.size[0], img.size[1], max_width, max_height)
    if size != img.size:
        img = img.resize(size, Image.Resampling.LANCZOS)

    out = _encode_jpeg(img, quality)
    if len(out) / (1024 * 1024) > max_size_mb:
        out = _encode_jpeg(img, quality * 0.7)
    return out


def to_data_url(jpeg: bytes, mime: str = "image/jpeg") -> str:
    b64 = base64.b64encode(jpeg).decode("utf-8")
    return f"data:{mime};base64,{b64}"


def base64_size_mb(b64: str) -> float:
    """Decoded size of a base64 payload (a data URL prefix is ignored)."""
    payload = b64.split(",", 1)[1] if "," in b64 else b64
    return (len(payload) * 3) / 4 / 1024 / 1024


def format_file_size(n: float) -> str:
    if n <= 0:
        return "0 Bytes"
    units = ("Bytes", "KB", "MB", "GB")
    i = max(0, min(int(math.floor(math.log(n) / math.log(1024))), len(units) - 1))
    value = round(n / (1024 ** i) * 100) / 100
    # 1.0 -> "1", 1.5 -> "1.5"
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[i]}"


def process_image(data: bytes, content_type: Optional[str]) -> ProcessedImage:
    validate_image_upload(data, content_type)
    width, height = image_dimensions(data)
    jpeg = compress_image(data)
    data_url = to_data_url(jpeg)
    return ProcessedImage(
        jpeg=jpeg,
        data_url=data_url,
        width=width,
        height=height,
        original_size=format_file_size(len(data)),
        compressed_size=format_file_size(base64_size_mb(data_url) * 1024 * 1024),
    )

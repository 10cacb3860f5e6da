"""
Tests for chart screenshot checks and compression.

Images are generated in memory with Pillow.
"""

import io

import pytest
from PIL import Image

from chartsignal.vision.preprocess import (
    MAX_UPLOAD_BYTES,
    ImageUploadError,
    base64_size_mb,
    compress_image,
    fit_within,
    format_file_size,
    image_dimensions,
    process_image,
    to_data_url,
    validate_image_upload,
)

from .conftest import make_image_bytes


class TestValidateUpload:
    @pytest.mark.parametrize("ctype", ["image/png", "image/jpeg", "image/jpg", "image/webp", "IMAGE/PNG"])
    def test_allowed_types(self, png_bytes, ctype):
        validate_image_upload(png_bytes, ctype)

    @pytest.mark.parametrize("ctype", [None, "", "application/pdf", "text/plain"])
    def test_not_an_image(self, png_bytes, ctype):
        with pytest.raises(ImageUploadError, match="must be an image"):
            validate_image_upload(png_bytes, ctype)

    def test_unsupported_image_type(self, png_bytes):
        with pytest.raises(ImageUploadError, match="Only JPEG, PNG, and WebP"):
            validate_image_upload(png_bytes, "image/gif")

    def test_too_large(self):
        with pytest.raises(ImageUploadError, match="less than 10MB"):
            validate_image_upload(b"\0" * (MAX_UPLOAD_BYTES + 1), "image/png")


class TestCompression:
    def test_fit_within_keeps_aspect(self):
        assert fit_within(3840, 2160, 1920, 1080) == (1920, 1080)
        assert fit_within(4000, 1000, 1920, 1080) == (1920, 480)
        assert fit_within(800, 600, 1920, 1080) == (800, 600)

    def test_large_image_downscaled(self):
        raw = make_image_bytes(size=(3000, 1500))
        out = compress_image(raw)
        img = Image.open(io.BytesIO(out))
        assert img.format == "JPEG"
        assert img.size == (1920, 960)

    def test_small_image_not_upscaled(self, png_bytes):
        out = compress_image(png_bytes)
        assert Image.open(io.BytesIO(out)).size == (64, 48)

    def test_rgba_converted(self):
        buf = io.BytesIO()
        Image.new("RGBA", (32, 32), (255, 0, 0, 128)).save(buf, format="PNG")
        out = compress_image(buf.getvalue())
        assert Image.open(io.BytesIO(out)).mode == "RGB"

    def test_retry_at_lower_quality_when_oversize(self, monkeypatch):
        from chartsignal.vision import preprocess

        qualities = []
        real = preprocess._encode_jpeg

        def spy(img, quality):
            qualities.append(quality)
            return real(img, quality)

        monkeypatch.setattr(preprocess, "_encode_jpeg", spy)
        compress_image(make_image_bytes(), max_size_mb=0.0)
        assert qualities == [pytest.approx(0.85), pytest.approx(0.85 * 0.7)]

    def test_garbage_bytes_rejected(self):
        with pytest.raises(ImageUploadError, match="Invalid image format"):
            compress_image(b"not an image")


class TestSizes:
    @pytest.mark.parametrize(
        "n, expected",
        [(0, "0 Bytes"), (512, "512 Bytes"), (1024, "1 KB"), (1536, "1.5 KB"), (5 * 1024 * 1024, "5 MB")],
    )
    def test_format_file_size(self, n, expected):
        assert format_file_size(n) == expected

    def test_base64_size_ignores_data_url_prefix(self):
        url = to_data_url(b"\0" * 3072)
        assert url.startswith("data:image/jpeg;base64,")
        assert base64_size_mb(url) == pytest.approx(3072 / 1024 / 1024)


class TestProcessImage:
    def test_process(self, png_bytes):
        p = process_image(png_bytes, "image/png")
        assert (p.width, p.height) == (64, 48)
        assert image_dimensions(png_bytes) == (64, 48)
        assert p.data_url.startswith("data:image/jpeg;base64,")
        assert p.original_size.endswith("Bytes") or p.original_size.endswith("KB")
        assert set(p.as_meta()) == {"width", "height", "original_size", "compressed_size"}

    def test_process_rejects_bad_type(self, png_bytes):
        with pytest.raises(ImageUploadError):
            process_image(png_bytes, "application/octet-stream")

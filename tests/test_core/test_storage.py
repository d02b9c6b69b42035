"""
转账凭证校验与存储测试
"""

import struct
import pytest
from unittest.mock import MagicMock

from app.core.exceptions import InvalidFileError, UpstreamUnavailableError
from app.core.storage import SlipStorage, image_dimensions, validate_slip_image


def make_png(width: int = 800, height: int = 600) -> bytes:
    return (
        b"\x89PNG\r\n\x1a\n"
        + struct.pack(">I", 13) + b"IHDR"
        + struct.pack(">II", width, height)
        + b"\x08\x02\x00\x00\x00" + b"\x00" * 64
    )


def make_jpeg(width: int = 1024, height: int = 768, fill: bytes = b"") -> bytes:
    app0 = b"\xff\xe0" + struct.pack(">H", 16) + b"JFIF\x00" + b"\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    sof0 = b"\xff\xc0" + struct.pack(">HBHH", 17, 8, height, width) + b"\x03" + b"\x00" * 9
    return b"\xff\xd8" + app0 + fill + sof0 + b"\x00" * 32


class TestValidateSlipImage:

    def test_valid_png(self, settings):
        validate_slip_image(make_png(), "image/png", settings)

    def test_valid_jpeg(self, settings):
        assert image_dimensions(make_jpeg(), "image/jpeg") == (1024, 768)
        validate_slip_image(make_jpeg(), "image/jpeg", settings)

    def test_jpeg_with_fill_bytes(self, settings):
        """测试标记前带填充字节的JPEG"""
        content = make_jpeg(fill=b"\xff\xff\xff")

        assert image_dimensions(content, "image/jpeg") == (1024, 768)
        validate_slip_image(content, "image/jpeg", settings)

    def test_unsupported_type(self, settings):
        with pytest.raises(InvalidFileError):
            validate_slip_image(b"GIF89a" + b"\x00" * 32, "image/gif", settings)

    def test_empty_file(self, settings):
        with pytest.raises(InvalidFileError):
            validate_slip_image(b"", "image/png", settings)

    def test_content_does_not_match_type(self, settings):
        """测试声明为PNG但内容为JPEG"""
        with pytest.raises(InvalidFileError):
            validate_slip_image(make_jpeg(), "image/png", settings)

    def test_file_too_large(self, settings):
        content = make_png() + b"\x00" * settings.slip_max_file_size
        with pytest.raises(InvalidFileError):
            validate_slip_image(content, "image/png", settings)

    def test_dimensions_out_of_range(self, settings):
        """测试图片尺寸超出范围"""
        with pytest.raises(InvalidFileError):
            validate_slip_image(make_png(100, 600), "image/png", settings)
        with pytest.raises(InvalidFileError):
            validate_slip_image(make_png(800, 20000), "image/png", settings)

    def test_dimension_bounds_inclusive(self, settings):
        validate_slip_image(make_png(200, 10000), "image/png", settings)


@pytest.mark.asyncio
class TestSlipStorage:

    @pytest.fixture
    def minio_client(self):
        return MagicMock()

    @pytest.fixture
    def storage(self, settings, minio_client):
        return SlipStorage(settings, client=minio_client)

    async def test_upload(self, storage, minio_client):
        content = make_png()

        stored = await storage.upload(content, "image/png", key_hint="order_001")

        assert stored.path.startswith("order_001/order_001_")
        assert stored.path.endswith(".png")
        assert stored.url == f"http://localhost:9000/payment-slips/{stored.path}"
        kwargs = minio_client.put_object.call_args.kwargs
        assert kwargs["bucket_name"] == "payment-slips"
        assert kwargs["object_name"] == stored.path
        assert kwargs["length"] == len(content)
        assert kwargs["content_type"] == "image/png"

    async def test_object_names_are_unique(self, storage):
        names = {storage.build_object_name("order_001", "image/jpeg") for _ in range(20)}
        assert len(names) == 20

    async def test_upload_failure(self, storage, minio_client):
        """测试存储不可用"""
        minio_client.put_object.side_effect = OSError("connection refused")

        with pytest.raises(UpstreamUnavailableError):
            await storage.upload(make_png(), "image/png", key_hint="order_001")

    async def test_delete(self, storage, minio_client):
        await storage.delete("order_001/slip.png")

        minio_client.remove_object.assert_called_once_with(
            bucket_name="payment-slips", object_name="order_001/slip.png"
        )

    async def test_ensure_bucket_creates_missing(self, storage, minio_client):
        minio_client.bucket_exists.return_value = False

        await storage.ensure_bucket()

        minio_client.make_bucket.assert_called_once_with(bucket_name="payment-slips")

import asyncio
import secrets
import struct
from datetime import datetime
from io import BytesIO
from typing import Optional, Tuple

from minio import Minio
from minio.error import S3Error
from pydantic import BaseModel
import structlog

from app.core.config import Settings
from app.core.exceptions import InvalidFileError, UpstreamUnavailableError

"转账凭证对象存储：上传前校验，MinIO 存取"

logger = structlog.get_logger()

# 文件头签名
MAGIC_NUMBERS = {
    "image/jpeg": [b"\xff\xd8\xff"],
    "image/png": [b"\x89PNG\r\n\x1a\n"],
}

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
}


class StoredObject(BaseModel):
    """已存储对象的引用"""
    path: str
    url: str


def _png_dimensions(content: bytes) -> Optional[Tuple[int, int]]:
    # IHDR 紧跟签名，宽高各4字节大端
    if len(content) < 24 or content[12:16] != b"IHDR":
        return None
    width, height = struct.unpack(">II", content[16:24])
    return width, height


def _jpeg_dimensions(content: bytes) -> Optional[Tuple[int, int]]:
    index = 2
    length = len(content)
    while index < length:
        if content[index] != 0xFF:
            return None
        # 标记前允许任意个 0xFF 填充字节
        while index < length and content[index] == 0xFF:
            index += 1
        if index + 7 >= length:
            return None
        marker = content[index]
        # SOF0-SOF15，排除 DHT/JPG/DAC
        if 0xC0 <= marker <= 0xCF and marker not in (0xC4, 0xC8, 0xCC):
            height, width = struct.unpack(">HH", content[index + 4:index + 8])
            return width, height
        segment_length = struct.unpack(">H", content[index + 1:index + 3])[0]
        index += 1 + segment_length
    return None


def image_dimensions(content: bytes, content_type: str) -> Optional[Tuple[int, int]]:
    """从文件头读取图片宽高，无法解析时返回None"""
    if content_type == "image/png":
        return _png_dimensions(content)
    if content_type == "image/jpeg":
        return _jpeg_dimensions(content)
    return None


def validate_slip_image(content: bytes, content_type: Optional[str], settings: Settings) -> None:
    """校验转账凭证：类型、大小、文件签名、尺寸"""
    if content_type not in settings.slip_allowed_mime_types:
        raise InvalidFileError(
            f"不支持的文件类型: {content_type}",
            {"allowed": list(settings.slip_allowed_mime_types)}
        )

    if not content:
        raise InvalidFileError("文件为空")

    if len(content) > settings.slip_max_file_size:
        raise InvalidFileError(
            f"文件大小超过限制（{settings.slip_max_file_size}字节）",
            {"size": len(content), "max_size": settings.slip_max_file_size}
        )

    if not any(content.startswith(magic) for magic in MAGIC_NUMBERS[content_type]):
        raise InvalidFileError("文件内容与声明的类型不符", {"content_type": content_type})

    dimensions = image_dimensions(content, content_type)
    if dimensions is None:
        raise InvalidFileError("无法读取图片尺寸")

    width, height = dimensions
    low, high = settings.slip_min_dimension, settings.slip_max_dimension
    if not (low <= width <= high and low <= height <= high):
        raise InvalidFileError(
            f"图片尺寸超出范围: {width}x{height}",
            {"width": width, "height": height, "min": low, "max": high}
        )


class SlipStorage:
    """转账凭证存储（MinIO）

    minio 客户端是同步的，所有调用放到线程中执行，不阻塞事件循环。
    """

    def __init__(self, settings: Settings, client: Optional[Minio] = None):
        self.settings = settings
        self.bucket = settings.slip_bucket_name
        self.client = client or Minio(
            endpoint=settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            secure=settings.minio_secure
        )

    async def ensure_bucket(self) -> None:
        """确保bucket存在"""
        try:
            exists = await asyncio.to_thread(self.client.bucket_exists, bucket_name=self.bucket)
            if not exists:
                await asyncio.to_thread(self.client.make_bucket, bucket_name=self.bucket)
                logger.info("创建存储bucket", bucket=self.bucket)
        except (S3Error, OSError) as e:
            logger.error("存储bucket检查失败", bucket=self.bucket, error=str(e))
            raise UpstreamUnavailableError("storage", str(e)) from e

    def build_object_name(self, key_hint: str, content_type: str) -> str:
        timestamp = int(datetime.now().timestamp() * 1000)
        random_part = secrets.token_hex(4)
        ext = EXTENSIONS.get(content_type, "")
        return f"{key_hint}/{key_hint}_{timestamp}_{random_part}{ext}"

    def public_url(self, path: str) -> str:
        return f"{self.settings.storage_public_url_computed}/{self.bucket}/{path}"

    async def upload(self, content: bytes, content_type: str, key_hint: str) -> StoredObject:
        """上传文件，返回存储路径和访问地址"""
        path = self.build_object_name(key_hint, content_type)
        try:
            await asyncio.to_thread(
                self.client.put_object,
                bucket_name=self.bucket,
                object_name=path,
                data=BytesIO(content),
                length=len(content),
                content_type=content_type
            )
        except (S3Error, OSError) as e:
            logger.error("上传转账凭证失败", path=path, error=str(e))
            raise UpstreamUnavailableError("storage", f"文件上传失败: {e}") from e

        logger.info("上传转账凭证成功", path=path, size=len(content))
        return StoredObject(path=path, url=self.public_url(path))

    async def delete(self, path: str) -> None:
        """删除文件"""
        try:
            await asyncio.to_thread(self.client.remove_object, bucket_name=self.bucket, object_name=path)
        except (S3Error, OSError) as e:
            logger.error("删除转账凭证失败", path=path, error=str(e))
            raise UpstreamUnavailableError("storage", f"文件删除失败: {e}") from e
        logger.info("删除转账凭证", path=path)

"""
图片资源模型 - 光栅图片引用及其结算状态

状态流转：pending → loaded | failed（终态不可回退）
"""

from __future__ import annotations

import asyncio
import io
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from pathlib import Path

from PIL import Image
from pydantic import BaseModel, Field, PrivateAttr

from ..interfaces import ResourceLoadError

logger = logging.getLogger(__name__)

# 读取原始字节的加载函数（可注入，便于测试与替换来源）
ImageFetcher = Callable[["ImageResource"], Awaitable[bytes]]


class ImageState(str, Enum):
    """图片结算状态"""
    PENDING = "pending"
    LOADED = "loaded"
    FAILED = "failed"


class ImageResource(BaseModel):
    """光栅图片资源"""
    source: str | None = Field(None, description="文件路径")
    data: bytes | None = Field(None, description="内联图片字节")
    alt: str = Field("", description="替代文本（占位框标签）")

    state: ImageState = ImageState.PENDING
    error: str | None = None

    _image: Image.Image | None = PrivateAttr(default=None)
    _lock: asyncio.Lock | None = PrivateAttr(default=None)

    @property
    def settled(self) -> bool:
        return self.state != ImageState.PENDING

    @property
    def image(self) -> Image.Image | None:
        """已解码图片（仅loaded状态可用）"""
        return self._image

    @property
    def label(self) -> str:
        return self.alt or (Path(self.source).name if self.source else "image")

    def decode(self, raw: bytes) -> Image.Image:
        """解码字节为RGB(A)图片"""
        try:
            img = Image.open(io.BytesIO(raw))
            img.load()
        except Exception as e:
            raise ResourceLoadError(f"图片解码失败: {self.label}: {e}") from e
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
        return img

    def load_sync(self) -> Image.Image | None:
        """同步加载（矢量路径使用），失败时标记failed并返回None"""
        if self.settled:
            return self._image
        try:
            raw = self.data if self.data is not None else self._read_source()
            self.mark_loaded(self.decode(raw))
        except ResourceLoadError as e:
            self.mark_failed(str(e))
        return self._image

    async def load(self, fetcher: ImageFetcher | None = None) -> ImageState:
        """
        异步加载至终态

        同一资源被多页/多处引用时只加载一次
        """
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self.settled:
                return self.state
            if self.data is not None:
                raw = self.data
            elif fetcher is not None:
                raw = await fetcher(self)
            else:
                raw = self._read_source()
            self.mark_loaded(self.decode(raw))
            return self.state

    def _read_source(self) -> bytes:
        if not self.source:
            raise ResourceLoadError("图片来源为空")
        try:
            return Path(self.source).read_bytes()
        except OSError as e:
            raise ResourceLoadError(f"图片读取失败: {self.source}: {e}") from e

    def mark_loaded(self, image: Image.Image) -> None:
        self._image = image
        self.state = ImageState.LOADED
        self.error = None

    def mark_failed(self, error: str) -> None:
        """标记失败（终态）"""
        if self.state == ImageState.LOADED:
            return
        self._image = None
        self.state = ImageState.FAILED
        self.error = error
        logger.warning(f"图片加载失败，使用占位框: {self.label}: {error}")


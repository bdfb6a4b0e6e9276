"""
文档装配器 - 将页流归一化为目标页面尺寸

职责：
1. 矢量页：原样放置
2. 位图页：按页宽等比缩放；超高时按溢出策略压缩或切片
3. 严格按到达顺序输出

溢出策略：
- compress: 等比缩小至整页高度内（水平居中）
- slice: 按页高切分为连续多页

测试要点：
- test_bitmap_fits_page_width: 位图按页宽放置
- test_compress_overflow: 超高位图压缩为一页
- test_slice_overflow: 超高位图切分为多页
- test_arrival_order: 输出顺序与页流一致
"""

from __future__ import annotations

import logging
import math
from typing import Literal

from ..config import PageConfig
from ..interfaces import IDocumentAssembler
from ..models import (
    BitmapPage,
    ImageOp,
    Orientation,
    PageStream,
    PageStreamEntry,
    PlacedPage,
    VectorPage,
)

logger = logging.getLogger(__name__)


class DocumentAssembler(IDocumentAssembler):
    """文档装配器实现"""

    def __init__(
        self,
        page: PageConfig | None = None,
        orientation: Orientation = Orientation.PORTRAIT,
        overflow_policy: Literal["compress", "slice"] = "compress",
    ):
        self.page = page or PageConfig()
        self.orientation = orientation
        self.overflow_policy = overflow_policy
        if orientation == Orientation.LANDSCAPE:
            self.width_mm = self.page.height_mm
            self.height_mm = self.page.width_mm
        else:
            self.width_mm = self.page.width_mm
            self.height_mm = self.page.height_mm

    def assemble(self, stream: PageStream) -> list[PlacedPage]:
        """消费页流并逐页归一化"""
        placed: list[PlacedPage] = []
        for index, entry in enumerate(stream.consume()):
            for page in self.normalize(entry):
                page.source_index = index
                placed.append(page)
        logger.debug(f"装配完成: 页流{len(stream)}页 → 成品{len(placed)}页")
        return placed

    def normalize(self, entry: PageStreamEntry) -> list[PlacedPage]:
        if isinstance(entry, VectorPage):
            return [PlacedPage(entry.width_mm, entry.height_mm, list(entry.ops))]
        if isinstance(entry, BitmapPage):
            return self._place_bitmap(entry)
        raise TypeError(f"未知页类型: {type(entry).__name__}")

    def _place_bitmap(self, bitmap: BitmapPage) -> list[PlacedPage]:
        W, H = self.width_mm, self.height_mm
        logical_w = bitmap.logical_width or bitmap.pixel_size[0]
        logical_h = bitmap.logical_height or bitmap.pixel_size[1]
        scaled_h = logical_h * W / logical_w

        if scaled_h <= H + 1e-6:
            return [PlacedPage(W, H, [ImageOp(0, 0, W, scaled_h, bitmap.image)])]

        if self.overflow_policy == "slice":
            return self._slice(bitmap, scaled_h)

        # compress：等比缩小到整页高度
        fit_w = W * H / scaled_h
        logger.info(f"位图页超高({scaled_h:.1f}mm > {H:.1f}mm)，压缩至单页")
        return [PlacedPage(W, H, [ImageOp((W - fit_w) / 2, 0, fit_w, H, bitmap.image)])]

    def _slice(self, bitmap: BitmapPage, scaled_h: float) -> list[PlacedPage]:
        W, H = self.width_mm, self.height_mm
        px_w, px_h = bitmap.pixel_size
        band_px = px_h * H / scaled_h
        n = math.ceil(scaled_h / H - 1e-6)
        logger.info(f"位图页超高({scaled_h:.1f}mm > {H:.1f}mm)，切分为{n}页")

        pages: list[PlacedPage] = []
        for i in range(n):
            top = int(round(i * band_px))
            bottom = min(int(round((i + 1) * band_px)), px_h)
            if bottom <= top:
                break
            piece = bitmap.image.crop((0, top, px_w, bottom))
            # 像素取整可能使单片略超页高
            piece_h = min((bottom - top) * scaled_h / px_h, H)
            pages.append(PlacedPage(W, H, [ImageOp(0, 0, W, piece_h, piece)]))
        return pages

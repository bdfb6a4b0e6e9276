"""
页面栅格化 - 将一页盒子按过采样倍率绘制为位图

约定：
1. 位图像素尺寸 = 逻辑尺寸 × 过采样倍率
2. 每绘制 chunk_nodes 个节点让出一次事件循环并检查取消
3. 失败图片绘制为带标签的占位框，不中止截取
4. 其余绘制异常一律视为截取失败（致命）
"""

from __future__ import annotations

import asyncio
import logging

from PIL import Image, ImageDraw

from ..cancellation import CancellationToken
from ..config import RasterConfig
from ..interfaces import CaptureError, GenerationCancelled, IPageRasterizer
from ..models import (
    BitmapPage,
    ContainerNode,
    ImageNode,
    ImageState,
    PageMarker,
    TableNode,
    TextNode,
)
from .surface import FontBook, LayoutBox

logger = logging.getLogger(__name__)

GRID_COLOR = (200, 200, 200)
PLACEHOLDER_FILL = (243, 244, 246)
PLACEHOLDER_TEXT = (107, 114, 128)
HEADER_TEXT = (255, 255, 255)
BORDER_COLOR = (209, 213, 219)


class PageRasterizer(IPageRasterizer):
    """单页位图截取器"""

    def __init__(self, config: RasterConfig, fonts: FontBook):
        self.config = config
        self.fonts = fonts
        self.scale = float(config.oversampling)

    async def capture(
        self,
        box: LayoutBox,
        token: CancellationToken | None = None,
    ) -> BitmapPage:
        """截取一页"""
        try:
            return await self._capture(box, token)
        except (GenerationCancelled, CaptureError):
            raise
        except Exception as e:
            raise CaptureError(f"页面截取失败: {e}") from e

    async def _capture(self, box: LayoutBox, token: CancellationToken | None) -> BitmapPage:
        s = self.scale
        size = (max(int(round(box.width * s)), 1), max(int(round(box.height * s)), 1))
        canvas = Image.new("RGB", size, (255, 255, 255))
        draw = ImageDraw.Draw(canvas)
        ox, oy = box.x, box.y

        for i, item in enumerate(box.walk(), start=1):
            self._paint(canvas, draw, item, ox, oy)
            if i % self.config.chunk_nodes == 0:
                if token is not None:
                    token.raise_if_cancelled()
                await asyncio.sleep(0)

        if token is not None:
            token.raise_if_cancelled()
        return BitmapPage(image=canvas, logical_width=box.width, logical_height=box.height, scale=s)

    # ------------------------------------------------------------------
    # 绘制
    # ------------------------------------------------------------------

    def _rect(self, item: LayoutBox, ox: float, oy: float) -> tuple[int, int, int, int]:
        s = self.scale
        x0 = int(round((item.x - ox) * s))
        y0 = int(round((item.y - oy) * s))
        x1 = int(round((item.x - ox + item.width) * s)) - 1
        y1 = int(round((item.y - oy + item.height) * s)) - 1
        return x0, y0, max(x1, x0), max(y1, y0)

    def _paint(self, canvas: Image.Image, draw: ImageDraw.ImageDraw, item: LayoutBox, ox: float, oy: float) -> None:
        node = item.node
        if isinstance(node, PageMarker):
            draw.rectangle(self._rect(item, ox, oy), fill=node.background)
        elif isinstance(node, ContainerNode):
            rect = self._rect(item, ox, oy)
            if node.background is not None:
                draw.rectangle(rect, fill=node.background)
            if node.border > 0:
                draw.rectangle(rect, outline=BORDER_COLOR, width=max(int(round(node.border * self.scale)), 1))
        elif isinstance(node, TextNode):
            self._paint_text(draw, item, node, ox, oy)
        elif isinstance(node, TableNode):
            self._paint_table(draw, item, node, ox, oy)
        elif isinstance(node, ImageNode):
            self._paint_image(canvas, draw, item, node, ox, oy)

    def _draw_line(
        self,
        draw: ImageDraw.ImageDraw,
        text: str,
        x: float,
        y: float,
        width: float,
        font_size: float,
        bold: bool,
        align: str,
        color: tuple[int, int, int],
    ) -> None:
        s = self.scale
        font = self.fonts.font(font_size * s)
        text_w = font.getlength(text)
        left = x * s
        if align == "center":
            left += (width * s - text_w) / 2
        elif align == "right":
            left += width * s - text_w
        draw.text(
            (left, y * s),
            text,
            font=font,
            fill=color,
            stroke_width=1 if bold else 0,
            stroke_fill=color,
        )

    def _paint_text(self, draw, item: LayoutBox, node: TextNode, ox: float, oy: float) -> None:
        inner_w = item.width - 2 * node.padding
        y = item.y - oy + node.padding
        for line in item.lines:
            self._draw_line(
                draw, line, item.x - ox + node.padding, y, inner_w,
                node.font_size, node.bold, node.align, node.color,
            )
            y += item.line_height

    def _paint_table(self, draw, item: LayoutBox, node: TableNode, ox: float, oy: float) -> None:
        table = item.table
        if table is None:
            return
        s = self.scale
        pad = node.cell_padding
        x0 = item.x - ox
        y = item.y - oy

        def paint_row(cells: list[list[str]], height: float, header: bool) -> None:
            cx = x0
            for lines, w in zip(cells, table.col_widths):
                rect = (
                    int(round(cx * s)), int(round(y * s)),
                    int(round((cx + w) * s)), int(round((y + height) * s)),
                )
                if header:
                    draw.rectangle(rect, fill=node.header_fill, outline=GRID_COLOR)
                else:
                    draw.rectangle(rect, outline=GRID_COLOR)
                ly = y + pad
                for line in lines:
                    self._draw_line(
                        draw, line, cx + pad, ly, w - 2 * pad, node.font_size,
                        header, "left", HEADER_TEXT if header else (0, 0, 0),
                    )
                    ly += table.line_height
                cx += w

        paint_row(table.header_lines, table.header_height, header=True)
        y += table.header_height
        for cells, height in zip(table.row_lines, table.row_heights):
            paint_row(cells, height, header=False)
            y += height

    def _paint_image(self, canvas: Image.Image, draw, item: LayoutBox, node: ImageNode, ox: float, oy: float) -> None:
        rect = self._rect(item, ox, oy)
        resource = node.image
        if resource.state == ImageState.LOADED and resource.image is not None:
            w = rect[2] - rect[0] + 1
            h = rect[3] - rect[1] + 1
            src = resource.image.resize((w, h))
            if src.mode == "RGBA":
                canvas.paste(src, (rect[0], rect[1]), src)
            else:
                canvas.paste(src, (rect[0], rect[1]))
            return

        # 失败（或未结算）图片：占位框
        draw.rectangle(rect, fill=PLACEHOLDER_FILL, outline=BORDER_COLOR)
        self._draw_line(
            draw, resource.label, item.x - ox, item.y - oy + item.height / 2 - 6,
            item.width, 10, False, "center", PLACEHOLDER_TEXT,
        )

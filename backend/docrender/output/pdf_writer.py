"""
PDF写出器 - 将成品页序列化为PDF字节

职责：
1. 使用reportlab画布在内存中逐页绘制
2. 坐标换算：页面mm左上角原点 → reportlab点左下角原点
3. 页数计算（PyPDF2）

测试要点：
- test_write_page_count: 写出页数与成品页数一致
- test_write_empty_rejected: 空页序列报错
"""

from __future__ import annotations

import io
import logging

from PyPDF2 import PdfReader
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from ..interfaces import IPdfWriter, WriteError
from ..models import ImageOp, LineOp, PlacedPage, RectOp, TextOp

logger = logging.getLogger(__name__)


def _rgb(color: tuple[int, int, int]) -> tuple[float, float, float]:
    return color[0] / 255.0, color[1] / 255.0, color[2] / 255.0


class PdfWriter(IPdfWriter):
    """reportlab写出器实现"""

    def __init__(self, title: str = "", author: str = "docrender"):
        self.title = title
        self.author = author

    def write(self, pages: list[PlacedPage]) -> bytes:
        """序列化为PDF字节"""
        if not pages:
            raise WriteError("没有可写出的页面")

        buffer = io.BytesIO()
        try:
            first = pages[0]
            c = canvas.Canvas(buffer, pagesize=(first.width_mm * mm, first.height_mm * mm))
            c.setTitle(self.title)
            c.setAuthor(self.author)
            for page in pages:
                c.setPageSize((page.width_mm * mm, page.height_mm * mm))
                for op in page.ops:
                    self._draw(c, op, page.height_mm)
                c.showPage()
            c.save()
        except WriteError:
            raise
        except Exception as e:
            raise WriteError(f"PDF序列化失败: {e}") from e

        data = buffer.getvalue()
        logger.debug(f"PDF序列化完成: {len(pages)}页, {len(data)}字节")
        return data

    def _draw(self, c: canvas.Canvas, op, page_h: float) -> None:
        if isinstance(op, TextOp):
            c.setFillColorRGB(*_rgb(op.color))
            c.setFont(op.font_name, op.font_size)
            x, y = op.x * mm, (page_h - op.y) * mm
            if op.align == "center":
                c.drawCentredString(x, y, op.text)
            elif op.align == "right":
                c.drawRightString(x, y, op.text)
            else:
                c.drawString(x, y, op.text)
        elif isinstance(op, LineOp):
            c.setStrokeColorRGB(*_rgb(op.color))
            c.setLineWidth(op.width * mm)
            c.line(op.x1 * mm, (page_h - op.y1) * mm, op.x2 * mm, (page_h - op.y2) * mm)
        elif isinstance(op, RectOp):
            c.setStrokeColorRGB(*_rgb(op.color))
            c.setLineWidth(op.line_width * mm)
            if op.fill is not None:
                c.setFillColorRGB(*_rgb(op.fill))
            c.rect(
                op.x * mm,
                (page_h - op.y - op.h) * mm,
                op.w * mm,
                op.h * mm,
                stroke=1 if op.stroke else 0,
                fill=1 if op.fill is not None else 0,
            )
        elif isinstance(op, ImageOp):
            c.drawImage(
                ImageReader(op.image),
                op.x * mm,
                (page_h - op.y - op.h) * mm,
                width=op.w * mm,
                height=op.h * mm,
                mask="auto",
            )
        else:
            raise WriteError(f"未知绘制指令: {type(op).__name__}")

    def count_pages(self, data: bytes) -> int:
        """计算PDF页数"""
        try:
            return len(PdfReader(io.BytesIO(data)).pages)
        except Exception as e:
            raise WriteError(f"PDF解析失败: {e}") from e

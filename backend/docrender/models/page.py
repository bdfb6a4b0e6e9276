"""
页流模型 - 矢量绘制指令页/位图页/归一化后的成品页

坐标约定：单位mm，原点在页面左上角，y向下增长
（写出PDF时再翻转为reportlab的左下角原点）
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Literal, Union

from PIL import Image

from ..interfaces import GenerationError

RGB = tuple[int, int, int]


@dataclass(frozen=True)
class TextOp:
    """文本（y为基线）"""
    x: float
    y: float
    text: str
    font_name: str = "Helvetica"
    font_size: float = 10
    align: Literal["left", "center", "right"] = "left"
    color: RGB = (0, 0, 0)


@dataclass(frozen=True)
class LineOp:
    """直线"""
    x1: float
    y1: float
    x2: float
    y2: float
    width: float = 0.2
    color: RGB = (0, 0, 0)


@dataclass(frozen=True)
class RectOp:
    """矩形"""
    x: float
    y: float
    w: float
    h: float
    stroke: bool = True
    fill: RGB | None = None
    line_width: float = 0.2
    color: RGB = (0, 0, 0)


@dataclass(frozen=True)
class ImageOp:
    """图片"""
    x: float
    y: float
    w: float
    h: float
    image: Image.Image


DrawOp = Union[TextOp, LineOp, RectOp, ImageOp]


@dataclass
class VectorPage:
    """矢量页（页面单位的绝对定位绘制指令）"""
    width_mm: float
    height_mm: float
    ops: list[DrawOp] = field(default_factory=list)

    def add(self, op: DrawOp) -> None:
        self.ops.append(op)

    def texts(self) -> list[str]:
        """页内全部文本（按绘制顺序）"""
        return [op.text for op in self.ops if isinstance(op, TextOp)]


@dataclass
class BitmapPage:
    """位图页（逐页截取结果）"""
    image: Image.Image
    logical_width: float   # CSS像素
    logical_height: float
    scale: float = 1.0

    @property
    def pixel_size(self) -> tuple[int, int]:
        return self.image.size


PageStreamEntry = Union[VectorPage, BitmapPage]


class PageStream:
    """
    页流 - 只追加、有序、仅可被写出端消费一次
    """

    def __init__(self) -> None:
        self._pages: list[PageStreamEntry] = []
        self._consumed = False
        # 已被吸收的非致命问题（图片失败/行高钳制），供任务记录告警
        self.flags: list[str] = []

    def add_flag(self, flag: str) -> None:
        if flag not in self.flags:
            self.flags.append(flag)

    def append(self, page: PageStreamEntry) -> None:
        if self._consumed:
            raise GenerationError("页流已被消费，不能追加")
        self._pages.append(page)

    def consume(self) -> list[PageStreamEntry]:
        """一次性取出全部页"""
        if self._consumed:
            raise GenerationError("页流只能被消费一次")
        self._consumed = True
        return list(self._pages)

    @property
    def consumed(self) -> bool:
        return self._consumed

    @property
    def pages(self) -> tuple[PageStreamEntry, ...]:
        return tuple(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def __iter__(self) -> Iterator[PageStreamEntry]:
        return iter(tuple(self._pages))


@dataclass
class PlacedPage:
    """归一化到目标页面尺寸的成品页"""
    width_mm: float
    height_mm: float
    ops: list[DrawOp] = field(default_factory=list)
    source_index: int = 0

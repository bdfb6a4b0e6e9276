"""
离屏表面布局 - 将可渲染节点树排布为带绝对坐标的盒子树

单位：CSS像素；坐标相对挂载根（左上角原点）
"""

from __future__ import annotations

from dataclasses import dataclass, field

from PIL import ImageFont

from ..layout.text import wrap_text
from ..models import (
    ContainerNode,
    ImageNode,
    PageMarker,
    TableNode,
    TextNode,
)

LINE_FACTOR = 1.4


class FontBook:
    """字体缓存（按像素字号）"""

    def __init__(self, font_path: str | None = None):
        self.font_path = font_path
        self._cache: dict[int, ImageFont.ImageFont | ImageFont.FreeTypeFont] = {}

    def font(self, size: float):
        key = max(int(round(size)), 1)
        if key not in self._cache:
            if self.font_path:
                self._cache[key] = ImageFont.truetype(self.font_path, key)
            else:
                self._cache[key] = ImageFont.load_default(size=key)
        return self._cache[key]

    def measure(self, text: str, font_name: str, font_size: float) -> float:
        """度量文本宽度(px)，与TextMeasurer同签名；font_name取 regular/bold"""
        width = self.font(font_size).getlength(text)
        if font_name == "bold":
            # 粗体以描边绘制，每字符略增宽
            width += len(text) * 0.05 * font_size
        return width


@dataclass
class TableLayout:
    """表格布局结果"""
    col_widths: list[float]
    header_lines: list[list[str]]
    header_height: float
    row_lines: list[list[list[str]]]
    row_heights: list[float]
    line_height: float


@dataclass
class LayoutBox:
    """布局盒子"""
    node: object
    x: float
    y: float
    width: float
    height: float
    children: list[LayoutBox] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)
    line_height: float = 0.0
    table: TableLayout | None = None

    def walk(self):
        """先序遍历（绘制顺序）"""
        yield self
        for child in self.children:
            yield from child.walk()


class BoxLayout:
    """盒子布局器"""

    def __init__(self, fonts: FontBook, page_width: float, page_height: float):
        self.fonts = fonts
        self.page_width = page_width
        self.page_height = page_height
        self.node_count = 0

    def layout(self, root) -> LayoutBox:
        self.node_count = 0
        return self._layout(root, 0.0, 0.0, self.page_width)

    def _layout(self, node, x: float, y: float, avail: float) -> LayoutBox:
        self.node_count += 1
        if isinstance(node, TextNode):
            return self._layout_text(node, x, y, avail)
        if isinstance(node, TableNode):
            return self._layout_table(node, x, y, avail)
        if isinstance(node, ImageNode):
            return self._layout_image(node, x, y, avail)
        if isinstance(node, PageMarker):
            width = min(node.width or self.page_width, max(avail, 1.0))
            min_height = node.min_height if node.min_height is not None else self.page_height
            return self._layout_children(
                node, node.children, "column", x, y, width, node.padding, node.gap, min_height
            )
        if isinstance(node, ContainerNode):
            width = min(node.width or avail, avail)
            inset = node.padding + node.border
            return self._layout_children(
                node, node.children, node.direction, x, y, width, inset, node.gap, node.min_height
            )
        raise TypeError(f"未知节点类型: {type(node).__name__}")

    def _layout_text(self, node: TextNode, x: float, y: float, avail: float) -> LayoutBox:
        inner = max(avail - 2 * node.padding, 1.0)
        font_key = "bold" if node.bold else "regular"
        lines = wrap_text(node.text, inner, font_key, node.font_size, self.fonts.measure)
        lh = node.font_size * LINE_FACTOR
        height = len(lines) * lh + 2 * node.padding
        return LayoutBox(node, x, y, avail, height, lines=lines, line_height=lh)

    def _layout_table(self, node: TableNode, x: float, y: float, avail: float) -> LayoutBox:
        n = len(node.columns)
        if node.column_widths and len(node.column_widths) == n:
            total = sum(node.column_widths)
            widths = [w * avail / total for w in node.column_widths] if total > avail else list(node.column_widths)
        else:
            widths = [avail / n] * n if n else []

        lh = node.font_size * LINE_FACTOR
        pad = node.cell_padding

        def wrap_cells(cells: list[str], font_key: str) -> list[list[str]]:
            cells = list(cells) + [""] * (n - len(cells))
            return [
                wrap_text(str(c), max(w - 2 * pad, 1.0), font_key, node.font_size, self.fonts.measure)
                for c, w in zip(cells, widths)
            ]

        def height_of(wrapped: list[list[str]]) -> float:
            return max((len(c) for c in wrapped), default=1) * lh + 2 * pad

        header = wrap_cells(node.columns, "bold")
        rows = [wrap_cells(r, "regular") for r in node.rows]
        table = TableLayout(
            col_widths=widths,
            header_lines=header,
            header_height=height_of(header),
            row_lines=rows,
            row_heights=[height_of(r) for r in rows],
            line_height=lh,
        )
        height = table.header_height + sum(table.row_heights)
        return LayoutBox(node, x, y, sum(widths), height, table=table)

    def _layout_image(self, node: ImageNode, x: float, y: float, avail: float) -> LayoutBox:
        width = min(node.width, avail)
        height = node.height * (width / node.width) if node.width else node.height
        return LayoutBox(node, x, y, width, height)

    def _layout_children(
        self,
        node,
        children: list,
        direction: str,
        x: float,
        y: float,
        width: float,
        inset: float,
        gap: float,
        min_height: float,
    ) -> LayoutBox:
        box = LayoutBox(node, x, y, width, 0.0)
        inner_w = max(width - 2 * inset, 1.0)
        cx, cy = x + inset, y + inset

        if direction == "row" and children:
            share = max((inner_w - gap * (len(children) - 1)) / len(children), 1.0)
            tallest = 0.0
            for child in children:
                child_box = self._layout(child, cx, cy, share)
                box.children.append(child_box)
                tallest = max(tallest, child_box.height)
                cx += share + gap
            content_h = tallest
        else:
            content_h = 0.0
            for i, child in enumerate(children):
                if i:
                    cy += gap
                    content_h += gap
                child_box = self._layout(child, cx, cy, inner_w)
                box.children.append(child_box)
                cy += child_box.height
                content_h += child_box.height

        box.height = max(content_h + 2 * inset, min_height)
        return box

"""
表格格式化器 - 列宽策略与按行高分页

职责：
1. 列宽：显式列宽优先，其余列均分剩余内容宽度
2. 行高：按单元格折行后的最大行数计算
3. 分页：行是原子单位，放不下时在该行之前换页

测试要点：
- test_no_break_when_fits: 总行高不超过可用高度时不分页
- test_rows_never_split: 每行恰好出现在一页，顺序不变
- test_26_24_split: 可用高度260mm、行高10mm时50行分为[26, 24]
- test_oversized_row_alone: 超过整页的行单独成页
"""

from __future__ import annotations

from ..interfaces import ITableFormatter
from ..models import TableSpec
from .text import TextMeasurer, reportlab_measurer, wrap_text


class TableFormatter(ITableFormatter):
    """表格格式化器实现"""

    def __init__(
        self,
        measure: TextMeasurer = reportlab_measurer,
        font_name: str = "Helvetica",
        line_height: float = 5.0,
        cell_padding: float = 1.5,
        min_row_height: float = 7.0,
    ):
        self.measure = measure
        self.font_name = font_name
        self.line_height = line_height
        self.cell_padding = cell_padding
        self.min_row_height = min_row_height

    def resolve_column_widths(self, table: TableSpec, content_width: float) -> list[float]:
        """计算列宽"""
        explicit = [c.width for c in table.columns]
        fixed_total = sum(w for w in explicit if w is not None)
        free = [i for i, w in enumerate(explicit) if w is None]

        if not free:
            if fixed_total <= 0:
                return [content_width / len(explicit)] * len(explicit)
            # 全部显式：按比例缩放到内容宽度
            factor = content_width / fixed_total
            return [w * factor for w in explicit]

        remaining = max(content_width - fixed_total, 0.0)
        share = remaining / len(free)
        return [share if w is None else w for w in explicit]

    def wrap_row(self, row: list[str], widths: list[float], font_size: float) -> list[list[str]]:
        """单行各单元格折行"""
        cells = list(row) + [""] * (len(widths) - len(row))
        inner = [max(w - 2 * self.cell_padding, 1.0) for w in widths]
        return [
            wrap_text(cell, inner[i], self.font_name, font_size, self.measure)
            for i, cell in enumerate(cells)
        ]

    def row_height(self, wrapped: list[list[str]]) -> float:
        """按最大行数计算行高"""
        n_lines = max((len(lines) for lines in wrapped), default=1)
        return max(n_lines * self.line_height + 2 * self.cell_padding, self.min_row_height)

    def paginate(
        self,
        row_heights: list[float],
        cursor: float,
        top: float,
        bottom: float,
    ) -> list[list[int]]:
        """
        按行高分页

        cursor + 行高 > bottom 时在该行之前换页；
        超过整页可用高度的行按整页高度计，单独成页。
        首组可能为空：表示当前页剩余空间连第一行都放不下，需立即换页。
        """
        band = bottom - top
        pages: list[list[int]] = [[]]
        for idx, height in enumerate(row_heights):
            height = min(height, band)
            if cursor + height > bottom and (pages[-1] or cursor > top):
                pages.append([])
                cursor = top
            pages[-1].append(idx)
            cursor += height
        return pages

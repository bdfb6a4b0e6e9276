"""
版面模块 - 矢量路径坐标排版

子模块：
- text: 文本度量与折行
- table: 表格列宽与按行高分页
- engine: 坐标版面引擎
"""

from .engine import CoordinateLayoutEngine
from .table import TableFormatter
from .text import TextMeasurer, bold_font, reportlab_measurer, wrap_text

__all__ = [
    "CoordinateLayoutEngine",
    "TableFormatter",
    "TextMeasurer",
    "reportlab_measurer",
    "bold_font",
    "wrap_text",
]

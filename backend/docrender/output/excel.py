"""
表格导出 - 将表格写为xlsx工作簿

依赖：
- openpyxl: Excel操作

列宽按 max(表头长度, 单元格长度) + 2 自适应
"""

from __future__ import annotations

import logging
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from ..interfaces import WriteError
from ..models import TableSpec

logger = logging.getLogger(__name__)


def column_widths(table: TableSpec) -> list[int]:
    """计算自适应列宽（字符数）"""
    widths = []
    for i, label in enumerate(table.labels):
        cells = [len(row[i]) if i < len(row) else 0 for row in table.rows]
        widths.append(max([len(label), *cells]) + 2)
    return widths


def export_table_xlsx(table: TableSpec, path: str | Path, sheet_title: str = "Results") -> Path:
    """导出表格到xlsx"""
    path = Path(path)
    if path.suffix.lower() != ".xlsx":
        path = path.with_suffix(".xlsx")

    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title

    ws.append(table.labels)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in table.rows:
        ws.append(list(row))

    for i, width in enumerate(column_widths(table), start=1):
        ws.column_dimensions[get_column_letter(i)].width = width

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(path)
    except OSError as e:
        raise WriteError(f"Excel写入失败: {path}: {e}") from e

    logger.info(f"表格已导出: {path} ({len(table.rows)}行)")
    return path

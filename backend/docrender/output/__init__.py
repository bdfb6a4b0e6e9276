"""
输出模块 - 装配、写出与交付

子模块：
- assembler: 页流归一化为目标页面
- pdf_writer: reportlab序列化与页数计算
- sinks: 磁盘（原子写入）/内存接收端
- excel: 表格导出xlsx
"""

from .assembler import DocumentAssembler
from .excel import column_widths, export_table_xlsx
from .pdf_writer import PdfWriter
from .sinks import FileSink, MemorySink

__all__ = [
    "DocumentAssembler",
    "PdfWriter",
    "FileSink",
    "MemorySink",
    "export_table_xlsx",
    "column_widths",
]

"""
模拟花名册表格分页，并可选生成样例PDF核对实际页数。

按当前运行期配置（documents/runtime.yaml）的页面几何排版 n 行花名册，
打印每页行数；指定 --pdf 时走完整矢量流水线写出文件。

示例：
  python tools/simulate_table_pagination.py --rows 50
  python tools/simulate_table_pagination.py --rows 120 --repeat-header --pdf output/roll.pdf
  python tools/simulate_table_pagination.py --rows 50 --band 260 --row-height 10
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from docrender.config import RuntimeConfig
from docrender.layout import CoordinateLayoutEngine, TableFormatter
from docrender.logging_config import setup_logging
from docrender.models import (
    Backend,
    ColumnSpec,
    ContentModel,
    GenerationRequest,
    HeaderBlock,
    SignatureBlock,
    TableBlock,
    TableSpec,
)
from docrender.output import FileSink
from docrender.pipeline import generate_document


def _roster(n: int, repeat_header: bool) -> ContentModel:
    table = TableSpec(
        columns=[
            ColumnSpec(label="Roll No", width=20),
            ColumnSpec(label="Student Name"),
            ColumnSpec(label="Father's Name"),
            ColumnSpec(label="Category", width=25),
        ],
        rows=[[i, f"Student {i:03d}", f"Parent {i:03d}", "GEN" if i % 3 else "OBC"] for i in range(1, n + 1)],
        repeat_header=repeat_header,
    )
    return ContentModel(
        title="Roll Statement",
        header=HeaderBlock(title="Sample School", subtitle_lines=["Sample Address"], heading="Roll Statement"),
        blocks=[TableBlock(table=table)],
        signature=SignatureBlock(labels=["Class Teacher", "Head of Institution"]),
        page_numbers=True,
    )


def _simulate_uniform(rows: int, band: float, row_height: float) -> list[int]:
    groups = TableFormatter().paginate([row_height] * rows, cursor=0.0, top=0.0, bottom=band)
    return [len(g) for g in groups]


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--rows", type=int, default=50)
    ap.add_argument("--config", default="documents/runtime.yaml")
    ap.add_argument("--repeat-header", action="store_true")
    ap.add_argument("--band", type=float, default=None, help="仅按固定可用高度(mm)模拟")
    ap.add_argument("--row-height", type=float, default=10.0)
    ap.add_argument("--pdf", default=None, help="写出样例PDF路径")
    args = ap.parse_args()

    if args.band is not None:
        print(f"uniform rows_per_page={_simulate_uniform(args.rows, args.band, args.row_height)}")
        return

    config = RuntimeConfig.from_yaml(args.config)
    setup_logging(config)
    content = _roster(args.rows, args.repeat_header)

    pages = CoordinateLayoutEngine(page=config.page).layout(content).pages
    per_page = [sum(1 for t in p.texts() if t.startswith("Student ")) for p in pages]
    print(f"pages={len(pages)} rows_per_page={per_page}")

    if args.pdf:
        out = Path(args.pdf)
        request = GenerationRequest(doc_type="roll_statement", filename=out.name, backend=Backend.VECTOR)
        job = asyncio.run(generate_document(content, request, sink=FileSink(out.parent), config=config))
        print(f"written={job.output_path} page_count={job.page_count}")


if __name__ == "__main__":
    main()

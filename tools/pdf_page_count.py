"""
PDF页数统计（用于核对生成结果的页数）。

示例：
  python tools/pdf_page_count.py --pdf output/Roll_Statement_8A.pdf
"""

from __future__ import annotations

import argparse
from pathlib import Path

from docrender.output import PdfWriter


def count_pdf_pages(path: Path) -> int:
    return PdfWriter().count_pages(path.read_bytes())


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--pdf", required=True, nargs="+")
    args = ap.parse_args()
    for pdf in args.pdf:
        n = count_pdf_pages(Path(pdf))
        print(f"{pdf}\t{n}")


if __name__ == "__main__":
    main()

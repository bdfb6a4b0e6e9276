"""
坐标版面引擎 - 矢量路径

职责：
1. 维护纵向游标，在固定可用带（页高减上下边距）内排版
2. 页眉按锚定策略输出（仅首页/每页）
3. 段落、键值行按注入的度量函数折行，逐行推进游标
4. 表格按行高分页（行不跨页，表头与首行同页，超整页的行钳制后单独成页）
5. 签名栏/页脚在内容循环结束后固定于末页底部（签名线按距下边距的偏移定位）
6. 可选页码脚注（Page i of N | Generated on: 日期）

测试要点：
- test_header_first_page_only / test_header_every_page: 页眉锚定策略
- test_table_pagination_rows: 行分页与顺序
- test_signature_last_page_only: 签名栏只在末页
- test_oversized_row_clamped_alone: 超整页首行钳制后与表头同页
- test_broken_image_placeholder: 图片失败以占位框代替
"""

from __future__ import annotations

import logging
from datetime import date

from ..config.runtime_config import PageConfig
from ..interfaces import ILayoutEngine, LayoutOverflowError
from ..models import (
    ContentModel,
    HeaderBlock,
    HeaderPolicy,
    ImageBlock,
    ImageOp,
    KeyValueBlock,
    LineOp,
    Orientation,
    PageStream,
    ParagraphBlock,
    RectOp,
    TableBlock,
    TableSpec,
    TextOp,
    VectorPage,
)
from .table import TableFormatter
from .text import PT_TO_MM, TextMeasurer, bold_font, reportlab_measurer, wrap_text

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255)
PLACEHOLDER_FILL = (235, 235, 235)
PLACEHOLDER_TEXT = (110, 110, 110)


class CoordinateLayoutEngine(ILayoutEngine):
    """坐标版面引擎实现"""

    def __init__(
        self,
        page: PageConfig | None = None,
        orientation: Orientation = Orientation.PORTRAIT,
        header_policy: HeaderPolicy = HeaderPolicy.FIRST_PAGE,
        page_numbers: bool = False,
        measure: TextMeasurer = reportlab_measurer,
        formatter: TableFormatter | None = None,
        generated_on: date | None = None,
    ):
        self.cfg = page or PageConfig()
        self.orientation = orientation
        self.header_policy = header_policy
        self.page_numbers = page_numbers
        self.measure = measure
        self.generated_on = generated_on or date.today()

        if orientation == Orientation.LANDSCAPE:
            self.page_w, self.page_h = self.cfg.height_mm, self.cfg.width_mm
        else:
            self.page_w, self.page_h = self.cfg.width_mm, self.cfg.height_mm

        self.top = self.cfg.margin_top
        self.bottom = self.page_h - self.cfg.margin_bottom
        self.left = self.cfg.margin_left
        self.right = self.page_w - self.cfg.margin_right
        self.content_width = self.right - self.left

        self.formatter = formatter or TableFormatter(
            measure=measure,
            font_name=self.cfg.font_name,
            line_height=self.cfg.line_height_mm,
            cell_padding=self.cfg.cell_padding_mm,
            min_row_height=self.cfg.min_row_height_mm,
        )

        self._stream: PageStream | None = None
        self._header: HeaderBlock | None = None
        self.cursor = self.top

    # ------------------------------------------------------------------
    # 主流程
    # ------------------------------------------------------------------

    def layout(self, content: ContentModel) -> PageStream:
        """排版为矢量页流"""
        self._stream = PageStream()
        self._header = content.header
        self._pages: list[VectorPage] = []
        self._new_page()

        for block in content.blocks:
            if isinstance(block, ParagraphBlock):
                self._layout_paragraph(block)
            elif isinstance(block, KeyValueBlock):
                self._layout_key_values(block)
            elif isinstance(block, TableBlock):
                self._layout_table(block.table)
            elif isinstance(block, ImageBlock):
                self._layout_image(block)

        self._place_pinned(content)

        if content.page_numbers or self.page_numbers:
            self._stamp_page_numbers()

        for page in self._pages:
            self._stream.append(page)

        logger.info(f"矢量排版完成: {content.title or '未命名'} 共{len(self._pages)}页")
        return self._stream

    @property
    def _page(self) -> VectorPage:
        return self._pages[-1]

    @property
    def _font_size(self) -> float:
        return self.cfg.font_size

    def _line_height(self, font_size: float) -> float:
        return max(self.cfg.line_height_mm, font_size * PT_TO_MM * 1.2)

    def _new_page(self) -> None:
        """开新页；按策略输出页眉"""
        self._pages.append(VectorPage(width_mm=self.page_w, height_mm=self.page_h))
        self.cursor = self.top
        if self._header is not None and (
            len(self._pages) == 1 or self.header_policy == HeaderPolicy.EVERY_PAGE
        ):
            self._draw_header(self._header)

    def _ensure_room(self, height: float) -> None:
        """放不下时换页（新页顶部不再换）"""
        if self.cursor + height > self.bottom and self.cursor > self._page_start():
            self._new_page()

    def _page_start(self) -> float:
        """新页内容起始游标（含每页页眉）"""
        if self._header is not None and self.header_policy == HeaderPolicy.EVERY_PAGE:
            return self.top + self._header_height(self._header)
        return self.top

    # ------------------------------------------------------------------
    # 页眉
    # ------------------------------------------------------------------

    def _header_lines(self, header: HeaderBlock) -> list[tuple[str, float, bool]]:
        lines = [(header.title, header.title_size, True)]
        lines.extend((line, header.subtitle_size, False) for line in header.subtitle_lines)
        if header.heading:
            lines.append((header.heading, header.heading_size, True))
        return lines

    def _header_height(self, header: HeaderBlock) -> float:
        body = sum(size * PT_TO_MM * 1.4 for _, size, _ in self._header_lines(header))
        return body + self.cfg.line_height_mm

    def _draw_header(self, header: HeaderBlock) -> None:
        center = self.left + self.content_width / 2
        for text, size, bold in self._header_lines(header):
            step = size * PT_TO_MM * 1.4
            self.cursor += step
            font = bold_font(self.cfg.font_name) if bold else self.cfg.font_name
            self._page.add(TextOp(center, self.cursor - step * 0.25, text, font, size, "center"))
        self.cursor += self.cfg.line_height_mm / 2
        self._page.add(LineOp(self.left, self.cursor, self.right, self.cursor, 0.3))
        self.cursor += self.cfg.line_height_mm / 2

    # ------------------------------------------------------------------
    # 段落 / 键值行
    # ------------------------------------------------------------------

    def _text_x(self, align: str) -> float:
        if align == "center":
            return self.left + self.content_width / 2
        if align == "right":
            return self.right
        return self.left

    def _layout_paragraph(self, block: ParagraphBlock) -> None:
        size = block.font_size or self._font_size
        font = bold_font(self.cfg.font_name) if block.bold else self.cfg.font_name
        lh = self._line_height(size)
        for line in wrap_text(block.text, self.content_width, font, size, self.measure):
            self._ensure_room(lh)
            self._page.add(TextOp(self._text_x(block.align), self.cursor + lh * 0.75, line, font, size, block.align))
            self.cursor += lh
        self.cursor += lh / 2

    def _layout_key_values(self, block: KeyValueBlock) -> None:
        size = block.font_size or self._font_size
        lh = self._line_height(size)
        label_font = bold_font(self.cfg.font_name)
        value_width = max(self.content_width - block.label_width, 1.0)
        max_lines = max(int((self.bottom - self._page_start()) // lh), 1)

        for label, value in block.rows:
            lines = wrap_text(value, value_width, self.cfg.font_name, size, self.measure)[:max_lines]
            self._ensure_room(len(lines) * lh)
            baseline = self.cursor + lh * 0.75
            self._page.add(TextOp(self.left, baseline, f"{label}:", label_font, size))
            for i, line in enumerate(lines):
                self._page.add(
                    TextOp(self.left + block.label_width, baseline + i * lh, line, self.cfg.font_name, size)
                )
            self.cursor += len(lines) * lh
        self.cursor += lh / 2

    # ------------------------------------------------------------------
    # 表格
    # ------------------------------------------------------------------

    def _layout_table(self, table: TableSpec) -> None:
        fmt = self.formatter
        widths = fmt.resolve_column_widths(table, self.content_width)
        header_font = bold_font(self.cfg.font_name)

        header_wrapped = [
            wrap_text(label, max(w - 2 * fmt.cell_padding, 1.0), header_font, table.font_size, self.measure)
            for label, w in zip(table.labels, widths)
        ]
        header_h = fmt.row_height(header_wrapped)

        wrapped_rows = [fmt.wrap_row(row, widths, table.font_size) for row in table.rows]
        heights = [fmt.row_height(w) for w in wrapped_rows]

        cont_top = self._page_start() + (header_h if table.repeat_header else 0.0)
        band = self.bottom - cont_top
        # 首行与表头同页，其可用高度需扣除表头
        first_band = max(self.bottom - self._page_start() - header_h, fmt.line_height)
        limits = [first_band] + [band] * (len(heights) - 1)
        for i, (h, limit) in enumerate(zip(heights, limits)):
            if h > limit:
                if not self.cfg.clamp_oversized_rows:
                    raise LayoutOverflowError(f"表格第{i + 1}行高度{h:.1f}mm超过整页可用高度{limit:.1f}mm")
                logger.warning(f"表格第{i + 1}行高度{h:.1f}mm超过整页，钳制为{limit:.1f}mm并单独成页")
                self._stream.add_flag(f"行高钳制:第{i + 1}行")

        first_h = min(heights[0], first_band) if heights else 0.0
        self._ensure_room(header_h + first_h)
        self._draw_table_header(table, widths, header_wrapped, header_h)
        if not heights:
            self.cursor += self.cfg.line_height_mm / 2
            return
        self._draw_table_row(table, widths, wrapped_rows[0], first_h)

        groups = fmt.paginate(heights[1:], self.cursor, cont_top, self.bottom)
        for gi, group in enumerate(groups):
            if gi > 0:
                self._new_page()
                if table.repeat_header:
                    self._draw_table_header(table, widths, header_wrapped, header_h)
            for idx in group:
                row = idx + 1
                self._draw_table_row(table, widths, wrapped_rows[row], min(heights[row], band))
        self.cursor += self.cfg.line_height_mm / 2

    def _draw_table_header(
        self,
        table: TableSpec,
        widths: list[float],
        wrapped: list[list[str]],
        height: float,
    ) -> None:
        x = self.left
        font = bold_font(self.cfg.font_name)
        for w, lines in zip(widths, wrapped):
            self._page.add(RectOp(x, self.cursor, w, height, stroke=True, fill=table.header_fill))
            self._cell_text(x, w, lines, font, table.font_size, height, WHITE)
            x += w
        self.cursor += height

    def _draw_table_row(
        self,
        table: TableSpec,
        widths: list[float],
        wrapped: list[list[str]],
        height: float,
    ) -> None:
        x = self.left
        for w, lines in zip(widths, wrapped):
            self._page.add(RectOp(x, self.cursor, w, height, stroke=True))
            self._cell_text(x, w, lines, self.cfg.font_name, table.font_size, height, (0, 0, 0))
            x += w
        self.cursor += height

    def _cell_text(
        self,
        x: float,
        width: float,
        lines: list[str],
        font: str,
        size: float,
        height: float,
        color: tuple[int, int, int],
    ) -> None:
        pad = self.formatter.cell_padding
        lh = self.formatter.line_height
        fit = max(int((height - 2 * pad) // lh), 1)
        for i, line in enumerate(lines[:fit]):
            baseline = self.cursor + pad + lh * (i + 0.75)
            self._page.add(TextOp(x + pad, baseline, line, font, size, "left", color))

    # ------------------------------------------------------------------
    # 图片
    # ------------------------------------------------------------------

    def _layout_image(self, block: ImageBlock) -> None:
        band = self.bottom - self._page_start()
        h = min(block.height, band)
        w = block.width * (h / block.height) if block.height else block.width
        w = min(w, self.content_width)
        caption_h = self._line_height(self._font_size) if block.caption else 0.0

        self._ensure_room(h + caption_h)
        if block.align == "center":
            x = self.left + (self.content_width - w) / 2
        elif block.align == "right":
            x = self.right - w
        else:
            x = self.left

        img = block.image.load_sync()
        if img is None:
            self._stream.add_flag(f"image_failed:{block.image.label}")
            self._draw_placeholder(x, self.cursor, w, h, block.image.label)
        else:
            self._page.add(ImageOp(x, self.cursor, w, h, img))
        self.cursor += h

        if block.caption:
            self._page.add(
                TextOp(x + w / 2, self.cursor + caption_h * 0.75, block.caption, self.cfg.font_name, self._font_size - 1, "center")
            )
            self.cursor += caption_h
        self.cursor += self.cfg.line_height_mm / 2

    def _draw_placeholder(self, x: float, y: float, w: float, h: float, label: str) -> None:
        self._page.add(RectOp(x, y, w, h, stroke=True, fill=PLACEHOLDER_FILL, color=PLACEHOLDER_TEXT))
        self._page.add(
            TextOp(x + w / 2, y + h / 2, f"image unavailable: {label}", self.cfg.font_name, 7, "center", PLACEHOLDER_TEXT)
        )

    # ------------------------------------------------------------------
    # 末页固定块 / 页码
    # ------------------------------------------------------------------

    def _place_pinned(self, content: ContentModel) -> None:
        """签名栏与页脚：内容循环结束后固定于末页底部"""
        if content.signature is None and content.footer is None:
            return

        lh = self.cfg.line_height_mm
        footer_h = lh * 1.5 if content.footer else 0.0
        if content.signature is not None:
            # 签名区至少容纳签名线与标签两行
            offset = max(content.signature.offset or self.cfg.signature_offset_mm, lh * 2)
            zone_top = self.bottom - offset - footer_h
        else:
            zone_top = self.bottom - footer_h

        if self.cursor > zone_top:
            self._new_page()

        if content.signature is not None and content.signature.labels:
            labels = content.signature.labels
            slot = self.content_width / len(labels)
            line_y = zone_top + lh
            for i, label in enumerate(labels):
                x0 = self.left + i * slot
                self._page.add(LineOp(x0 + slot * 0.15, line_y, x0 + slot * 0.85, line_y, 0.3))
                self._page.add(
                    TextOp(x0 + slot / 2, line_y + lh, label, self.cfg.font_name, self._font_size, "center")
                )

        if content.footer is not None:
            self._page.add(
                TextOp(
                    self.left + self.content_width / 2,
                    self.bottom - footer_h * 0.25,
                    content.footer.text,
                    self.cfg.font_name,
                    self._font_size - 1,
                    "center",
                )
            )

    def _stamp_page_numbers(self) -> None:
        total = len(self._pages)
        stamp_date = self.generated_on.strftime("%d/%m/%Y")
        for i, page in enumerate(self._pages, start=1):
            page.add(
                TextOp(
                    self.page_w / 2,
                    self.page_h - self.cfg.page_number_offset_mm,
                    f"Page {i} of {total} | Generated on: {stamp_date}",
                    self.cfg.font_name,
                    8,
                    "center",
                )
            )

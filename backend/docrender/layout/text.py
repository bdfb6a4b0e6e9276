"""
文本度量与折行

度量函数可注入：measure(text, font_name, font_size) -> 宽度(mm)
默认实现使用reportlab的标准14字体度量
"""

from __future__ import annotations

from collections.abc import Callable

from reportlab.pdfbase import pdfmetrics

PT_TO_MM = 25.4 / 72

TextMeasurer = Callable[[str, str, float], float]

_BOLD_FONTS = {
    "Helvetica": "Helvetica-Bold",
    "Times-Roman": "Times-Bold",
    "Courier": "Courier-Bold",
}


def reportlab_measurer(text: str, font_name: str, font_size: float) -> float:
    """按reportlab字体度量计算文本宽度(mm)"""
    return pdfmetrics.stringWidth(text, font_name, font_size) * PT_TO_MM


def bold_font(font_name: str) -> str:
    """取对应粗体字体名"""
    if font_name.endswith("-Bold"):
        return font_name
    return _BOLD_FONTS.get(font_name, f"{font_name}-Bold")


def wrap_text(
    text: str,
    max_width: float,
    font_name: str,
    font_size: float,
    measure: TextMeasurer = reportlab_measurer,
) -> list[str]:
    """
    按宽度折行

    - 保留显式换行
    - 按空白分词贪心填充
    - 单个词超宽时按字符强制断开
    - 空文本返回一行空串（保证行高）
    """
    lines: list[str] = []
    for paragraph in text.split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue

        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if measure(candidate, font_name, font_size) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            if measure(word, font_name, font_size) <= max_width:
                current = word
            else:
                pieces = _break_word(word, max_width, font_name, font_size, measure)
                lines.extend(pieces[:-1])
                current = pieces[-1]
        lines.append(current)
    return lines or [""]


def _break_word(
    word: str,
    max_width: float,
    font_name: str,
    font_size: float,
    measure: TextMeasurer,
) -> list[str]:
    """超宽单词按字符断开（每段至少一个字符）"""
    pieces: list[str] = []
    current = ""
    for ch in word:
        if current and measure(current + ch, font_name, font_size) > max_width:
            pieces.append(current)
            current = ch
        else:
            current += ch
    pieces.append(current)
    return pieces

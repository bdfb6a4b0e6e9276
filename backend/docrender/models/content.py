"""
内容模型 - 与后端无关的单份文档描述

矢量路径的唯一输入；构建后不可变，由发起本次生成的调用方独占
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from .image import ImageResource

_FROZEN = {"frozen": True, "arbitrary_types_allowed": True}


class HeaderBlock(BaseModel):
    """页眉（居中：标题/副标题行/文档标题）"""
    kind: Literal["header"] = "header"
    title: str
    subtitle_lines: list[str] = Field(default_factory=list)
    heading: str | None = None
    title_size: float = 16
    subtitle_size: float = 10
    heading_size: float = 12

    model_config = _FROZEN


class KeyValueBlock(BaseModel):
    """键值行（标签: 值）"""
    kind: Literal["key_value"] = "key_value"
    rows: list[tuple[str, str]] = Field(default_factory=list)
    label_width: float = 50.0  # mm
    font_size: float | None = None

    model_config = _FROZEN


class ParagraphBlock(BaseModel):
    """段落（按宽度自动折行）"""
    kind: Literal["paragraph"] = "paragraph"
    text: str
    font_size: float | None = None
    bold: bool = False
    align: Literal["left", "center", "right"] = "left"

    model_config = _FROZEN


class ColumnSpec(BaseModel):
    """列定义"""
    label: str
    width: float | None = Field(None, description="显式列宽(mm)，为空则均分剩余宽度")

    model_config = _FROZEN


class TableSpec(BaseModel):
    """表格定义（行是原子单位，不跨页拆分）"""
    columns: list[ColumnSpec]
    rows: list[list[str]] = Field(default_factory=list)
    font_size: float = 9
    header_fill: tuple[int, int, int] = (22, 160, 133)
    repeat_header: bool = False

    model_config = _FROZEN

    @field_validator("rows", mode="before")
    @classmethod
    def _stringify_cells(cls, rows):
        # 调用方常直接传入数字/None（学号、日期等）
        return [["" if cell is None else str(cell) for cell in row] for row in rows]

    @model_validator(mode="after")
    def _check_row_width(self) -> TableSpec:
        n = len(self.columns)
        for i, row in enumerate(self.rows):
            if len(row) > n:
                raise ValueError(f"第{i + 1}行单元格数({len(row)})超过列数({n})")
        return self

    @property
    def labels(self) -> list[str]:
        return [c.label for c in self.columns]


class TableBlock(BaseModel):
    """表格块"""
    kind: Literal["table"] = "table"
    table: TableSpec

    model_config = _FROZEN


class ImageBlock(BaseModel):
    """图片块（解码失败时以占位框代替）"""
    kind: Literal["image"] = "image"
    image: ImageResource
    width: float = 40.0   # mm
    height: float = 40.0  # mm
    caption: str | None = None
    align: Literal["left", "center", "right"] = "center"

    model_config = _FROZEN


class SignatureBlock(BaseModel):
    """签名栏（仅固定于末页底部）"""
    kind: Literal["signature"] = "signature"
    labels: list[str]
    offset: float | None = Field(None, description="距下边距的偏移(mm)，为空取配置值")

    model_config = _FROZEN


class FooterBlock(BaseModel):
    """页脚（仅末页，位于签名栏下方）"""
    kind: Literal["footer"] = "footer"
    text: str

    model_config = _FROZEN


BodyBlock = Annotated[
    Union[KeyValueBlock, ParagraphBlock, TableBlock, ImageBlock],
    Field(discriminator="kind"),
]


class ContentModel(BaseModel):
    """内容模型（矢量路径输入）"""
    title: str = ""
    header: HeaderBlock | None = None
    blocks: list[BodyBlock] = Field(default_factory=list)
    signature: SignatureBlock | None = None
    footer: FooterBlock | None = None
    page_numbers: bool = False

    model_config = _FROZEN

    def iter_images(self) -> list[ImageResource]:
        """按文档顺序列出全部图片资源"""
        return [b.image for b in self.blocks if isinstance(b, ImageBlock)]

"""
可渲染节点 - 栅格路径输入的封闭标签变体

变体：text / table / image / container / page（分页标记）
单位：CSS像素（96dpi）

页面规则：
- 带page标记的节点即一页，按文档顺序（先序遍历）排列，不重排
- 嵌套在标记内的标记不单独成页
- 全树无标记时整棵树为一页
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator

from .image import ImageResource


class TextNode(BaseModel):
    """文本块"""
    kind: Literal["text"] = "text"
    text: str
    font_size: float = 14
    bold: bool = False
    align: Literal["left", "center", "right"] = "left"
    color: tuple[int, int, int] = (17, 24, 39)
    padding: float = 0


class TableNode(BaseModel):
    """表格"""
    kind: Literal["table"] = "table"
    columns: list[str]
    column_widths: list[float] | None = None
    rows: list[list[str]] = Field(default_factory=list)
    font_size: float = 12
    cell_padding: float = 4
    header_fill: tuple[int, int, int] = (22, 160, 133)

    @field_validator("rows", mode="before")
    @classmethod
    def _stringify_cells(cls, rows):
        return [["" if cell is None else str(cell) for cell in row] for row in rows]


class ImageNode(BaseModel):
    """图片槽"""
    kind: Literal["image"] = "image"
    image: ImageResource
    width: float = 100
    height: float = 100


class ContainerNode(BaseModel):
    """容器"""
    kind: Literal["container"] = "container"
    children: list[RenderableNode] = Field(default_factory=list)
    direction: Literal["column", "row"] = "column"
    width: float | None = None
    min_height: float = 0
    padding: float = 0
    gap: float = 0
    border: float = 0
    background: tuple[int, int, int] | None = None


class PageMarker(BaseModel):
    """分页标记（一页的边界容器）"""
    kind: Literal["page"] = "page"
    children: list[RenderableNode] = Field(default_factory=list)
    width: float | None = None
    min_height: float | None = None
    padding: float = 24
    gap: float = 8
    background: tuple[int, int, int] = (255, 255, 255)


RenderableNode = Annotated[
    Union[TextNode, TableNode, ImageNode, ContainerNode, PageMarker],
    Field(discriminator="kind"),
]

ContainerNode.model_rebuild()
PageMarker.model_rebuild()


def iter_nodes(node) -> Iterator:
    """先序遍历（文档顺序）"""
    yield node
    for child in getattr(node, "children", ()):
        yield from iter_nodes(child)


def find_page_markers(root) -> list[PageMarker]:
    """按文档顺序查找最外层分页标记"""
    if isinstance(root, PageMarker):
        return [root]
    markers: list[PageMarker] = []
    for child in getattr(root, "children", ()):
        markers.extend(find_page_markers(child))
    return markers


def collect_images(node) -> list[ImageResource]:
    """收集子树内全部图片资源（去重，保持顺序）"""
    seen: set[int] = set()
    result: list[ImageResource] = []
    for n in iter_nodes(node):
        if isinstance(n, ImageNode) and id(n.image) not in seen:
            seen.add(id(n.image))
            result.append(n.image)
    return result

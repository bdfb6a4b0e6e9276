"""
数据模型层 - 定义系统核心数据结构

所有模块通过这些模型交互，实现解耦：
- ContentModel: 矢量路径输入（页眉/正文块/表格/签名栏/页脚）
- RenderableNode: 栅格路径输入（封闭标签变体树）
- ImageResource: 图片资源及结算状态
- PageStream: 有序只追加的页流
- GenerationRequest: 生成请求（后端/方向/文件名）
- GenerationJob: 生成任务状态与生命周期
"""

from .content import (
    ColumnSpec,
    ContentModel,
    FooterBlock,
    HeaderBlock,
    ImageBlock,
    KeyValueBlock,
    ParagraphBlock,
    SignatureBlock,
    TableBlock,
    TableSpec,
)
from .image import ImageFetcher, ImageResource, ImageState
from .job import GenerationJob, JobProgress, JobStatus
from .page import (
    BitmapPage,
    DrawOp,
    ImageOp,
    LineOp,
    PageStream,
    PageStreamEntry,
    PlacedPage,
    RectOp,
    TextOp,
    VectorPage,
)
from .renderable import (
    ContainerNode,
    ImageNode,
    PageMarker,
    RenderableNode,
    TableNode,
    TextNode,
    collect_images,
    find_page_markers,
    iter_nodes,
)
from .request import Backend, GenerationRequest, HeaderPolicy, Orientation

__all__ = [
    "ContentModel",
    "HeaderBlock",
    "KeyValueBlock",
    "ParagraphBlock",
    "TableBlock",
    "TableSpec",
    "ColumnSpec",
    "ImageBlock",
    "SignatureBlock",
    "FooterBlock",
    "ImageResource",
    "ImageState",
    "ImageFetcher",
    "RenderableNode",
    "TextNode",
    "TableNode",
    "ImageNode",
    "ContainerNode",
    "PageMarker",
    "iter_nodes",
    "find_page_markers",
    "collect_images",
    "PageStream",
    "PageStreamEntry",
    "VectorPage",
    "BitmapPage",
    "PlacedPage",
    "DrawOp",
    "TextOp",
    "LineOp",
    "RectOp",
    "ImageOp",
    "Backend",
    "Orientation",
    "HeaderPolicy",
    "GenerationRequest",
    "GenerationJob",
    "JobStatus",
    "JobProgress",
]

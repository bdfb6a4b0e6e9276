"""
生成请求模型 - 调用方为一次生成显式给出的参数

渲染后端由调用方按文档类型显式选择，从不自动探测
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from ..config import DocumentProfile


class Backend(str, Enum):
    """渲染后端"""
    VECTOR = "vector"   # 坐标排版
    RASTER = "raster"   # 离屏挂载+逐页截取


class Orientation(str, Enum):
    """纸张方向"""
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class HeaderPolicy(str, Enum):
    """页眉锚定策略"""
    FIRST_PAGE = "first_page"
    EVERY_PAGE = "every_page"


class GenerationRequest(BaseModel):
    """单次生成请求"""
    doc_type: str = Field(..., description="文档类型（对应document_profiles.yaml）")
    filename: str = Field(..., description="目标文件名")
    backend: Backend
    orientation: Orientation = Orientation.PORTRAIT
    header_policy: HeaderPolicy = HeaderPolicy.FIRST_PAGE
    page_numbers: bool = False

    @property
    def pdf_filename(self) -> str:
        """补齐.pdf扩展名"""
        if self.filename.lower().endswith(".pdf"):
            return self.filename
        return f"{self.filename}.pdf"

    @classmethod
    def from_profile(
        cls,
        doc_type: str,
        profile: DocumentProfile,
        filename: str | None = None,
        **name_fields: str,
    ) -> GenerationRequest:
        """按文档类型配置构造请求"""
        name = filename or profile.filename_pattern.format(doc_type=doc_type, **name_fields)
        return cls(
            doc_type=doc_type,
            filename=name,
            backend=profile.backend,
            orientation=profile.orientation,
            header_policy=profile.header_policy,
            page_numbers=profile.page_numbers,
        )

"""
模块接口契约 - 定义各模块的抽象接口

设计原则：
1. 模块间通过接口通信，不直接依赖具体实现
2. 每个接口定义清晰的输入输出类型
3. 便于单元测试和mock替换

使用方式：
    from docrender.interfaces import IDeliverySink

    class MySink(IDeliverySink):
        def deliver(self, filename: str, data: bytes) -> Path | None:
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .cancellation import CancellationToken
    from .models import (
        Backend,
        BitmapPage,
        ContentModel,
        GenerationRequest,
        ImageResource,
        PageStream,
        PageStreamEntry,
        PlacedPage,
        TableSpec,
    )
    from .raster.surface import LayoutBox


# ============================================================================
# 版面模块接口（矢量路径）
# ============================================================================

class ITableFormatter(ABC):
    """表格格式化器接口 - 列宽策略与按行高分页"""

    @abstractmethod
    def resolve_column_widths(self, table: TableSpec, content_width: float) -> list[float]:
        """
        计算列宽

        Args:
            table: 表格定义
            content_width: 可用内容宽度(mm)

        Returns:
            每列宽度(mm)，总和等于content_width
        """
        ...

    @abstractmethod
    def paginate(
        self,
        row_heights: list[float],
        cursor: float,
        top: float,
        bottom: float,
    ) -> list[list[int]]:
        """
        按行高分页（行不可拆分）

        Args:
            row_heights: 各行所需高度(mm)
            cursor: 表格起始纵坐标
            top: 续页起始纵坐标（上边距）
            bottom: 下边界纵坐标

        Returns:
            每页包含的行下标列表
        """
        ...


class ILayoutEngine(ABC):
    """坐标版面引擎接口"""

    @abstractmethod
    def layout(self, content: ContentModel) -> PageStream:
        """
        将内容模型排版为绝对坐标的绘制指令页流

        Raises:
            LayoutOverflowError: 禁用钳制时原子块超过整页
        """
        ...


# ============================================================================
# 栅格路径接口
# ============================================================================

class IImageBarrier(ABC):
    """图片就绪屏障接口"""

    @abstractmethod
    async def wait(
        self,
        resources: list[ImageResource],
        token: CancellationToken | None = None,
    ) -> list[ImageResource]:
        """
        等待所有图片进入终态（成功或失败）

        Returns:
            加载失败的图片列表（已被吸收，不抛出）
        """
        ...


class IPageRasterizer(ABC):
    """单页位图截取接口"""

    @abstractmethod
    async def capture(
        self,
        box: LayoutBox,
        token: CancellationToken | None = None,
    ) -> BitmapPage:
        """
        截取一页为位图（按过采样倍率）

        Raises:
            CaptureError: 截取失败（整份文档中止）
        """
        ...


# ============================================================================
# 渲染策略接口
# ============================================================================

class IDocumentRenderer(ABC):
    """文档渲染策略接口（矢量/栅格二选一，由调用方显式指定）"""

    backend: Backend

    @abstractmethod
    async def render(
        self,
        source: Any,
        request: GenerationRequest,
        token: CancellationToken | None = None,
    ) -> PageStream:
        """
        渲染为页流

        Args:
            source: ContentModel（矢量）或 RenderableNode（栅格）
            request: 生成请求
            token: 取消令牌

        Returns:
            按文档顺序排列的页流
        """
        ...


# ============================================================================
# 输出模块接口
# ============================================================================

class IDocumentAssembler(ABC):
    """文档装配器接口"""

    @abstractmethod
    def assemble(self, stream: PageStream) -> list[PlacedPage]:
        """将页流归一化为目标页面尺寸（保持到达顺序）"""
        ...

    @abstractmethod
    def normalize(self, entry: PageStreamEntry) -> list[PlacedPage]:
        """归一化单个页"""
        ...


class IDeliverySink(ABC):
    """交付接收端接口（保存/下载）"""

    @abstractmethod
    def deliver(self, filename: str, data: bytes) -> Path | None:
        """
        交付成品

        Args:
            filename: 目标文件名
            data: PDF字节

        Returns:
            落盘路径（内存接收端返回None）

        Raises:
            WriteError: 交付失败（不得残留半成品文件）
        """
        ...


class IPdfWriter(ABC):
    """PDF写出器接口"""

    @abstractmethod
    def write(self, pages: list[PlacedPage]) -> bytes:
        """序列化为PDF字节"""
        ...

    @abstractmethod
    def count_pages(self, data: bytes) -> int:
        """计算PDF页数"""
        ...


# ============================================================================
# 异常定义
# ============================================================================

class DocRenderError(Exception):
    """基础异常"""
    pass


class ResourceLoadError(DocRenderError):
    """图片加载/解码失败（局部吸收，以占位框代替）"""
    pass


class CaptureError(DocRenderError):
    """页面截取失败（致命，整份文档中止）"""
    pass


class LayoutOverflowError(DocRenderError):
    """原子块超过整页高度"""
    pass


class WriteError(DocRenderError):
    """序列化或交付失败"""
    pass


class GenerationError(DocRenderError):
    """生成请求非法"""
    pass


class GenerationCancelled(DocRenderError):
    """生成被取消"""
    pass

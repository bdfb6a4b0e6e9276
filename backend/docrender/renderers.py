"""
渲染策略 - 矢量/栅格两种后端，调用方按文档类型显式选择

栅格路径协议：
1. 获取渲染宿主槽位，离屏挂载节点树
2. 等待“绘制已提交”信号（settle_timeout_ms 仅作兜底上限）
3. 按文档顺序枚举分页标记，逐页严格串行：
   图片汇合 → 截取前稳定延时 → 过采样截取
4. 任何退出路径都拆除挂载点并释放槽位

测试要点：
- test_wrong_source_rejected: 源类型与后端不符时报错
- test_raster_idempotent: 同一节点树两次渲染页数与顺序一致
- test_failing_images_complete: 图片失败时仍完成且不挂起
"""

from __future__ import annotations

import logging
from typing import Any

from .cancellation import CancellationToken, checkpoint
from .config import RuntimeConfig, get_config
from .interfaces import GenerationError, IDocumentRenderer
from .layout import CoordinateLayoutEngine
from .models import (
    Backend,
    ContainerNode,
    ContentModel,
    GenerationRequest,
    ImageFetcher,
    ImageNode,
    Orientation,
    PageMarker,
    PageStream,
    TableNode,
    TextNode,
    collect_images,
)
from .raster import ImageReadinessBarrier, PageRasterizer, RenderHost, get_render_host

logger = logging.getLogger(__name__)

RENDERABLE_TYPES = (TextNode, TableNode, ImageNode, ContainerNode, PageMarker)


class VectorRenderer(IDocumentRenderer):
    """矢量后端：坐标排版"""

    backend = Backend.VECTOR

    def __init__(self, config: RuntimeConfig | None = None, **engine_kwargs: Any):
        self.config = config or get_config()
        self.engine_kwargs = engine_kwargs

    async def render(
        self,
        source: Any,
        request: GenerationRequest,
        token: CancellationToken | None = None,
    ) -> PageStream:
        if not isinstance(source, ContentModel):
            raise GenerationError(f"矢量后端需要ContentModel，收到: {type(source).__name__}")
        await checkpoint(token)

        engine = CoordinateLayoutEngine(
            page=self.config.page,
            orientation=request.orientation,
            header_policy=request.header_policy,
            page_numbers=request.page_numbers,
            **self.engine_kwargs,
        )
        stream = engine.layout(source)

        await checkpoint(token)
        return stream


class RasterRenderer(IDocumentRenderer):
    """栅格后端：离屏挂载 + 逐页截取"""

    backend = Backend.RASTER

    def __init__(
        self,
        config: RuntimeConfig | None = None,
        host: RenderHost | None = None,
        fetcher: ImageFetcher | None = None,
    ):
        self.config = config or get_config()
        self.host = host or get_render_host(self.config.raster.font_path)
        self.barrier = ImageReadinessBarrier(self.config.raster.image_timeout_ms, fetcher)
        self.rasterizer = PageRasterizer(self.config.raster, self.host.fonts)

    def page_size_px(self, orientation: Orientation) -> tuple[float, float]:
        """挂载表面尺寸（CSS像素）"""
        ratio = self.config.raster.css_px_per_mm
        w, h = self.config.page.width_mm * ratio, self.config.page.height_mm * ratio
        if orientation == Orientation.LANDSCAPE:
            w, h = h, w
        return w, h

    async def render(
        self,
        source: Any,
        request: GenerationRequest,
        token: CancellationToken | None = None,
    ) -> PageStream:
        if not isinstance(source, RENDERABLE_TYPES):
            raise GenerationError(f"栅格后端需要可渲染节点树，收到: {type(source).__name__}")

        raster = self.config.raster
        width_px, height_px = self.page_size_px(request.orientation)
        stream = PageStream()

        async with self.host.session(width_px, height_px, owner=request.filename, token=token) as mount:
            mount.mount(source)
            await mount.wait_painted(raster.settle_timeout_ms / 1000.0, token)

            boxes = mount.page_boxes()
            logger.info(f"[{request.filename}] 离屏挂载就绪: {len(boxes)}页")

            for index, box in enumerate(boxes, start=1):
                failed = await self.barrier.wait(collect_images(box.node), token)
                for image in failed:
                    stream.add_flag(f"image_failed:{image.label}")

                await checkpoint(token, raster.pre_capture_delay_ms / 1000.0)
                page = await self.rasterizer.capture(box, token)
                stream.append(page)
                logger.debug(f"[{request.filename}] 第{index}页截取完成: {page.pixel_size}")

        return stream


def get_renderer(backend: Backend, config: RuntimeConfig | None = None) -> IDocumentRenderer:
    """按后端标志获取渲染策略"""
    if backend == Backend.VECTOR:
        return VectorRenderer(config)
    if backend == Backend.RASTER:
        return RasterRenderer(config)
    raise GenerationError(f"未知渲染后端: {backend}")

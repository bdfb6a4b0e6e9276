"""
栅格模块 - 离屏挂载、图片汇合与逐页截取

子模块：
- surface: 离屏表面盒子布局
- host: 单槽位渲染宿主与离屏挂载点
- barrier: 逐页图片就绪汇合
- rasterizer: 过采样位图截取
"""

from .barrier import ImageReadinessBarrier
from .host import OffscreenMount, RenderHost, get_render_host
from .rasterizer import PageRasterizer
from .surface import BoxLayout, FontBook, LayoutBox

__all__ = [
    "ImageReadinessBarrier",
    "RenderHost",
    "OffscreenMount",
    "get_render_host",
    "PageRasterizer",
    "BoxLayout",
    "FontBook",
    "LayoutBox",
]

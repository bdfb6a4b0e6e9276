"""
离屏渲染宿主 - 进程内唯一的挂载槽位

职责：
1. 单槽位互斥：同一时刻只允许一次生成使用宿主，后来者等待前者拆除
2. 作用域获取/释放：成功、失败、取消的每条退出路径都会卸载并释放
3. 挂载：在离屏表面上排布节点树，完成后发出“绘制已提交”信号
4. 枚举分页标记（无标记时整棵树为一页）

测试要点：
- test_host_serializes_sessions: 并发请求串行化
- test_host_released_on_failure: 异常路径释放槽位
- test_single_page_without_markers: 无分页标记时仅一页
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from ..cancellation import CancellationToken
from ..interfaces import CaptureError, GenerationCancelled
from ..models import find_page_markers
from .surface import BoxLayout, FontBook, LayoutBox

logger = logging.getLogger(__name__)


class OffscreenMount:
    """
    离屏挂载点

    不可见但参与布局（隐藏元素的布局尺寸为零，因此采用离屏而非隐藏）
    """

    def __init__(self, fonts: FontBook, width_px: float, height_px: float, owner: str = ""):
        self.fonts = fonts
        self.width_px = width_px
        self.height_px = height_px
        self.owner = owner
        self.attached = True
        self.root_box: LayoutBox | None = None
        self._tree = None
        self._painted = asyncio.Event()
        self._paint_task: asyncio.Task | None = None
        self._paint_error: BaseException | None = None

    def mount(self, tree) -> None:
        """挂载节点树；布局异步进行，完成后置位绘制信号"""
        if not self.attached:
            raise CaptureError("挂载点已拆除")
        if self._tree is not None:
            raise CaptureError("挂载点已有内容")
        self._tree = tree
        self._paint_task = asyncio.ensure_future(self._commit_paint())

    async def _commit_paint(self) -> None:
        # 让出一次，使挂载调用先返回
        await asyncio.sleep(0)
        try:
            layout = BoxLayout(self.fonts, self.width_px, self.height_px)
            self.root_box = layout.layout(self._tree)
            logger.debug(f"[{self.owner}] 离屏布局完成: {layout.node_count}个节点")
        except Exception as e:
            self._paint_error = e
        finally:
            self._painted.set()

    async def wait_painted(self, timeout_sec: float, token: CancellationToken | None = None) -> None:
        """
        等待绘制提交信号

        超时仅作兜底；超时或布局异常均视为截取失败
        """
        if self._paint_task is None:
            raise CaptureError("尚未挂载内容")
        waiter = asyncio.ensure_future(self._painted.wait())
        watchers = {waiter}
        cancel_waiter = None
        if token is not None:
            cancel_waiter = asyncio.ensure_future(token.wait())
            watchers.add(cancel_waiter)
        try:
            done, _ = await asyncio.wait(watchers, timeout=timeout_sec, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for w in watchers:
                if not w.done():
                    w.cancel()

        if token is not None:
            token.raise_if_cancelled()
        if waiter not in done:
            raise CaptureError(f"离屏布局未在{timeout_sec:.2f}s内提交")
        if self._paint_error is not None:
            raise CaptureError(f"离屏布局失败: {self._paint_error}") from self._paint_error

    def page_boxes(self) -> list[LayoutBox]:
        """按文档顺序返回各页盒子（无分页标记时为整棵树）"""
        if self.root_box is None:
            raise CaptureError("离屏布局尚未完成")
        markers = find_page_markers(self._tree)
        if not markers:
            return [self.root_box]
        wanted = {id(m) for m in markers}
        return [box for box in self.root_box.walk() if id(box.node) in wanted]

    def unmount(self) -> None:
        """卸载并拆除"""
        if self._paint_task is not None and not self._paint_task.done():
            self._paint_task.cancel()
        self._tree = None
        self.root_box = None
        self.attached = False


class RenderHost:
    """
    进程内唯一渲染宿主（单槽位资源）
    """

    def __init__(self, font_path: str | None = None):
        self.fonts = FontBook(font_path)
        self.history: list[str] = []
        self._lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None
        self._active: OffscreenMount | None = None

    @property
    def busy(self) -> bool:
        return self._active is not None

    def _get_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    @asynccontextmanager
    async def session(
        self,
        width_px: float,
        height_px: float,
        owner: str = "",
        token: CancellationToken | None = None,
    ) -> AsyncIterator[OffscreenMount]:
        """获取宿主槽位并创建离屏挂载点；退出时必定拆除释放"""
        lock = self._get_lock()
        if token is not None:
            token.raise_if_cancelled()
        if lock.locked():
            logger.info(f"[{owner}] 渲染宿主占用中，排队等待")
        async with lock:
            if token is not None and token.cancelled:
                raise GenerationCancelled(token.reason or "cancelled")
            mount = OffscreenMount(self.fonts, width_px, height_px, owner)
            self._active = mount
            self.history.append(f"acquire:{owner}")
            try:
                yield mount
            finally:
                mount.unmount()
                self._active = None
                self.history.append(f"release:{owner}")


# 进程级单例
_host: RenderHost | None = None


def get_render_host(font_path: str | None = None) -> RenderHost:
    """获取进程级渲染宿主（惰性创建）"""
    global _host
    if _host is None:
        _host = RenderHost(font_path)
    return _host

"""
取消令牌 - 在每个挂起点检查

挂起点：渲染宿主就绪等待、逐页图片汇合、截取前稳定延时、截取分块让出、
流水线阶段之间。
"""

from __future__ import annotations

import asyncio

from .interfaces import GenerationCancelled


class CancellationToken:
    """协作式取消令牌"""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise GenerationCancelled(self.reason or "cancelled")

    async def wait(self) -> None:
        """挂起直到被取消"""
        await self._event.wait()

    async def sleep(self, seconds: float) -> None:
        """可被取消打断的延时"""
        self.raise_if_cancelled()
        if seconds <= 0:
            await asyncio.sleep(0)
        else:
            try:
                await asyncio.wait_for(self._event.wait(), timeout=seconds)
            except asyncio.TimeoutError:
                pass
        self.raise_if_cancelled()


async def checkpoint(token: CancellationToken | None, seconds: float = 0) -> None:
    """挂起点：延时并检查取消（token可为空）"""
    if token is None:
        await asyncio.sleep(max(seconds, 0))
        return
    await token.sleep(seconds)

"""
图片就绪汇合 - 截取一页前等待页内全部图片结算

规则：
1. 页内每张图片各自结算为 loaded 或 failed
2. 单张图片超时或出错只标记该图片失败，不影响汇合完成
3. 已结算的图片不再等待；无图片时立即完成
4. 返回本页失败的图片列表（截取时绘制占位框）
"""

from __future__ import annotations

import asyncio
import logging

from ..cancellation import CancellationToken
from ..interfaces import IImageBarrier
from ..models import ImageFetcher, ImageResource, ImageState

logger = logging.getLogger(__name__)


class ImageReadinessBarrier(IImageBarrier):
    """逐页图片汇合"""

    def __init__(self, timeout_ms: int = 5000, fetcher: ImageFetcher | None = None):
        self.timeout_sec = timeout_ms / 1000.0
        self.fetcher = fetcher

    async def _settle(self, image: ImageResource) -> None:
        try:
            await asyncio.wait_for(image.load(self.fetcher), timeout=self.timeout_sec)
        except asyncio.TimeoutError:
            image.mark_failed(f"加载超时({self.timeout_sec:.1f}s)")
        except Exception as e:
            image.mark_failed(str(e))

    async def wait(
        self,
        images: list[ImageResource],
        token: CancellationToken | None = None,
    ) -> list[ImageResource]:
        """等待全部图片结算，返回失败的图片"""
        if token is not None:
            token.raise_if_cancelled()

        pending = [img for img in images if not img.settled]
        if pending:
            logger.debug(f"等待图片结算: {len(pending)}张")
            gathered = asyncio.ensure_future(
                asyncio.gather(*(self._settle(img) for img in pending))
            )
            if token is None:
                await gathered
            else:
                cancel_waiter = asyncio.ensure_future(token.wait())
                try:
                    await asyncio.wait(
                        {gathered, cancel_waiter}, return_when=asyncio.FIRST_COMPLETED
                    )
                finally:
                    cancel_waiter.cancel()
                    if not gathered.done():
                        gathered.cancel()
                token.raise_if_cancelled()

        failed = [img for img in images if img.state == ImageState.FAILED]
        if failed:
            logger.warning(f"本页{len(failed)}张图片失败，以占位框截取")
        return failed

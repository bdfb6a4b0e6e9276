"""
取消令牌单元测试
"""

import asyncio

import pytest

from docrender.cancellation import CancellationToken, checkpoint
from docrender.interfaces import GenerationCancelled


class TestCancellationToken:
    """取消令牌测试"""

    def test_cancel_sets_reason(self):
        token = CancellationToken()
        assert not token.cancelled
        token.cancel("closed")
        token.cancel("again")
        assert token.cancelled
        assert token.reason == "closed"
        with pytest.raises(GenerationCancelled, match="closed"):
            token.raise_if_cancelled()

    @pytest.mark.asyncio
    async def test_sleep_interrupted(self):
        """测试延时可被取消打断"""
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.02, token.cancel)
        with pytest.raises(GenerationCancelled):
            await asyncio.wait_for(token.sleep(10), timeout=2)

    @pytest.mark.asyncio
    async def test_sleep_completes(self):
        token = CancellationToken()
        await token.sleep(0.01)
        assert not token.cancelled

    @pytest.mark.asyncio
    async def test_checkpoint_without_token(self):
        await checkpoint(None, 0)

    @pytest.mark.asyncio
    async def test_checkpoint_cancelled(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(GenerationCancelled):
            await checkpoint(token)

"""
栅格路径单元测试（离屏挂载/图片汇合/逐页截取）

每个模块完成后必须运行：pytest backend/tests/unit/test_raster.py -v
"""

import asyncio

import pytest
from PIL import ImageChops

from docrender.cancellation import CancellationToken
from docrender.config import RasterConfig
from docrender.interfaces import CaptureError, GenerationCancelled, GenerationError
from docrender.models import (
    BitmapPage,
    ContainerNode,
    ContentModel,
    ImageResource,
    ImageState,
    Orientation,
    PageMarker,
    TextNode,
)
from docrender.raster import BoxLayout, FontBook, ImageReadinessBarrier, PageRasterizer
from docrender.renderers import RasterRenderer, VectorRenderer


async def never_loads(resource: ImageResource) -> bytes:
    await asyncio.sleep(10)
    return b""


def labelled_tree(prefix: str, pages: int) -> ContainerNode:
    """每页文本带前缀的节点树"""
    return ContainerNode(
        children=[
            PageMarker(children=[TextNode(text=f"{prefix} page {i + 1}", font_size=24, bold=True)])
            for i in range(pages)
        ]
    )


@pytest.fixture
def renderer(runtime_config, render_host) -> RasterRenderer:
    return RasterRenderer(runtime_config, host=render_host, fetcher=never_loads)


class TestBoxLayout:
    """离屏表面布局测试"""

    def test_page_marker_fills_page(self):
        layout = BoxLayout(FontBook(), 794, 1123)
        box = layout.layout(PageMarker(children=[TextNode(text="hello")]))
        assert box.width == 794
        assert box.height == 1123
        assert layout.node_count == 2

    def test_column_stacks_children(self):
        layout = BoxLayout(FontBook(), 400, 600)
        box = layout.layout(ContainerNode(children=[TextNode(text="a"), TextNode(text="b")], gap=10))
        first, second = box.children
        assert second.y == pytest.approx(first.y + first.height + 10)

    def test_row_shares_width(self):
        layout = BoxLayout(FontBook(), 400, 600)
        box = layout.layout(ContainerNode(direction="row", children=[TextNode(text="a"), TextNode(text="b")]))
        assert [c.width for c in box.children] == [200, 200]
        assert box.children[1].x == 200


class TestImageReadinessBarrier:
    """图片汇合测试"""

    @pytest.mark.asyncio
    async def test_no_images_completes(self):
        assert await ImageReadinessBarrier(100).wait([]) == []

    @pytest.mark.asyncio
    async def test_failures_absorbed(self, good_image, broken_image):
        """测试单张失败/超时不影响汇合完成"""
        slow = ImageResource(source="slow.png")
        barrier = ImageReadinessBarrier(timeout_ms=100, fetcher=never_loads)
        failed = await asyncio.wait_for(barrier.wait([good_image, broken_image, slow]), timeout=5)
        assert failed == [broken_image, slow]
        assert good_image.state == ImageState.LOADED
        assert slow.state == ImageState.FAILED

    @pytest.mark.asyncio
    async def test_settled_images_not_reloaded(self, good_image):
        good_image.load_sync()

        async def fail_fetch(resource):
            raise AssertionError("should not fetch")

        assert await ImageReadinessBarrier(100, fail_fetch).wait([good_image]) == []

    @pytest.mark.asyncio
    async def test_cancel_while_waiting(self):
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.05, token.cancel, "user")
        barrier = ImageReadinessBarrier(timeout_ms=5000, fetcher=never_loads)
        with pytest.raises(GenerationCancelled):
            await barrier.wait([ImageResource(source="slow.png")], token)


class TestPageRasterizer:
    """位图截取测试"""

    @pytest.mark.asyncio
    async def test_oversampled_size(self):
        """测试像素尺寸 = 逻辑尺寸 × 过采样倍率"""
        fonts = FontBook()
        box = BoxLayout(fonts, 200, 100).layout(ContainerNode(children=[TextNode(text="hi")], min_height=50))
        page = await PageRasterizer(RasterConfig(oversampling=2), fonts).capture(box)
        assert isinstance(page, BitmapPage)
        assert page.pixel_size == (400, int(round(box.height * 2)))
        assert page.scale == 2

    @pytest.mark.asyncio
    async def test_cancelled_capture(self):
        fonts = FontBook()
        box = BoxLayout(fonts, 200, 100).layout(ContainerNode(children=[TextNode(text="hi")]))
        token = CancellationToken()
        token.cancel()
        with pytest.raises(GenerationCancelled):
            await PageRasterizer(RasterConfig(chunk_nodes=1), fonts).capture(box, token)


class TestRenderHost:
    """渲染宿主测试"""

    @pytest.mark.asyncio
    async def test_host_released_on_failure(self, render_host):
        """测试异常路径拆除并释放槽位"""
        with pytest.raises(RuntimeError):
            async with render_host.session(100, 100, owner="x") as mount:
                raise RuntimeError("boom")
        assert not mount.attached
        assert not render_host.busy
        assert render_host.history == ["acquire:x", "release:x"]

        async with render_host.session(100, 100, owner="y"):
            assert render_host.busy
        assert render_host.history[-1] == "release:y"

    @pytest.mark.asyncio
    async def test_layout_failure_is_capture_error(self, render_host):
        with pytest.raises(CaptureError):
            async with render_host.session(100, 100, owner="bad") as mount:
                mount.mount(object())
                await mount.wait_painted(1.0)
        assert not render_host.busy

    @pytest.mark.asyncio
    async def test_mount_twice_rejected(self, render_host):
        async with render_host.session(100, 100) as mount:
            mount.mount(TextNode(text="a"))
            with pytest.raises(CaptureError):
                mount.mount(TextNode(text="b"))

    @pytest.mark.asyncio
    async def test_host_serializes_sessions(self, renderer, raster_request):
        """测试并发生成串行化：后者等待前者拆除，位图互不混入"""
        tree_a, tree_b = labelled_tree("Roll A", pages=2), labelled_tree("Roll B", pages=3)
        req_a = raster_request.model_copy(update={"filename": "A"})
        req_b = raster_request.model_copy(update={"filename": "B"})
        stream_a, stream_b = await asyncio.gather(
            renderer.render(tree_a, req_a),
            renderer.render(tree_b, req_b),
        )
        assert renderer.host.history == ["acquire:A", "release:A", "acquire:B", "release:B"]
        assert len(stream_a) == 2
        assert len(stream_b) == 3

        solo_a = await renderer.render(tree_a, req_a)
        solo_b = await renderer.render(tree_b, req_b)
        for concurrent, solo in ((stream_a, solo_a), (stream_b, solo_b)):
            for got, expected in zip(concurrent.pages, solo.pages):
                assert ImageChops.difference(got.image, expected.image).getbbox() is None
        assert ImageChops.difference(stream_a.pages[0].image, stream_b.pages[0].image).getbbox() is not None


class TestRasterRenderer:
    """栅格渲染协议测试"""

    @pytest.mark.asyncio
    async def test_pages_in_document_order(self, renderer, raster_request, card_tree):
        stream = await renderer.render(card_tree, raster_request)
        assert len(stream) == 3
        assert all(isinstance(p, BitmapPage) for p in stream)
        assert stream.pages[0].pixel_size == (794, 1123)

    @pytest.mark.asyncio
    async def test_single_page_without_markers(self, renderer, raster_request):
        """测试无分页标记时整棵树为一页"""
        tree = ContainerNode(children=[TextNode(text="Bonafide Certificate"), TextNode(text="body")])
        stream = await renderer.render(tree, raster_request)
        assert len(stream) == 1

    @pytest.mark.asyncio
    async def test_raster_idempotent(self, renderer, raster_request, card_tree):
        """测试同一节点树两次渲染页数与顺序一致"""
        first = await renderer.render(card_tree, raster_request)
        second = await renderer.render(card_tree, raster_request)
        assert len(first) == len(second) == 3
        for a, b in zip(first, second):
            assert a.pixel_size == b.pixel_size
            assert ImageChops.difference(a.image, b.image).getbbox() is None

    @pytest.mark.asyncio
    async def test_failing_images_complete(self, renderer, raster_request, tree_factory, broken_image):
        """测试图片失败/超时仍完成且不挂起"""
        slow = ImageResource(source="slow.png")
        tree = tree_factory(pages=2, images=[broken_image, slow])
        stream = await asyncio.wait_for(renderer.render(tree, raster_request), timeout=10)
        assert len(stream) == 2
        assert stream.flags == ["image_failed:broken", "image_failed:slow.png"]
        assert not renderer.host.busy

    @pytest.mark.asyncio
    async def test_loaded_image_painted(self, renderer, raster_request, tree_factory, good_image):
        stream = await renderer.render(tree_factory(pages=1, images=[good_image]), raster_request)
        assert good_image.state == ImageState.LOADED
        assert stream.flags == []

    @pytest.mark.asyncio
    async def test_landscape_surface(self, renderer, raster_request, card_tree):
        request = raster_request.model_copy(update={"orientation": Orientation.LANDSCAPE})
        stream = await renderer.render(card_tree, request)
        assert stream.pages[0].pixel_size == (1123, 794)

    @pytest.mark.asyncio
    async def test_cancel_before_start(self, renderer, raster_request, card_tree):
        token = CancellationToken()
        token.cancel("user")
        with pytest.raises(GenerationCancelled):
            await renderer.render(card_tree, raster_request, token)
        assert not renderer.host.busy

    @pytest.mark.asyncio
    async def test_cancel_during_image_wait(self, runtime_config, render_host, raster_request, tree_factory):
        """测试汇合期间取消：抛出取消并释放宿主"""
        runtime_config.raster.image_timeout_ms = 5000
        renderer = RasterRenderer(runtime_config, host=render_host, fetcher=never_loads)
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.05, token.cancel, "user")
        tree = tree_factory(pages=2, images=[ImageResource(source="slow.png")])
        with pytest.raises(GenerationCancelled):
            await renderer.render(tree, raster_request, token)
        assert not render_host.busy
        assert render_host.history[-1] == "release:Progress_Card"


class TestRendererSourceCheck:
    """渲染策略源类型校验"""

    @pytest.mark.asyncio
    async def test_raster_rejects_content_model(self, renderer, raster_request):
        with pytest.raises(GenerationError):
            await renderer.render(ContentModel(), raster_request)

    @pytest.mark.asyncio
    async def test_vector_rejects_tree(self, runtime_config, vector_request, card_tree):
        with pytest.raises(GenerationError):
            await VectorRenderer(runtime_config).render(card_tree, vector_request)

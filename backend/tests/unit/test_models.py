"""
数据模型单元测试

每个模块完成后必须运行：pytest backend/tests/unit/test_models.py -v
"""

import pytest
from pydantic import ValidationError

from docrender.interfaces import GenerationError
from docrender.models import (
    BitmapPage,
    ColumnSpec,
    ContainerNode,
    ContentModel,
    GenerationJob,
    GenerationRequest,
    ImageBlock,
    ImageNode,
    ImageResource,
    ImageState,
    JobStatus,
    PageMarker,
    PageStream,
    ParagraphBlock,
    TableNode,
    TableSpec,
    TextNode,
    VectorPage,
    collect_images,
    find_page_markers,
)


class TestTableSpec:
    """表格定义测试"""

    def test_cells_stringified(self):
        """测试单元格统一转为字符串"""
        table = TableSpec(columns=[ColumnSpec(label="No"), ColumnSpec(label="DOB")], rows=[[1, None]])
        assert table.rows == [["1", ""]]

    def test_too_many_cells_rejected(self):
        """测试单元格数超过列数"""
        with pytest.raises(ValidationError):
            TableSpec(columns=[ColumnSpec(label="A")], rows=[["x", "y"]])

    def test_defaults(self, sample_table: TableSpec):
        """测试默认值"""
        assert sample_table.header_fill == (22, 160, 133)
        assert sample_table.repeat_header is False
        assert sample_table.labels == ["Roll", "Name", "Category"]


class TestContentModel:
    """内容模型测试"""

    def test_frozen(self, sample_content: ContentModel):
        """测试构建后不可变"""
        with pytest.raises(ValidationError):
            sample_content.title = "changed"

    def test_iter_images(self, good_image: ImageResource, broken_image: ImageResource):
        """测试按顺序列出图片"""
        content = ContentModel(
            blocks=[
                ImageBlock(image=good_image),
                ParagraphBlock(text="between"),
                ImageBlock(image=broken_image),
            ]
        )
        assert content.iter_images() == [good_image, broken_image]

    def test_blocks_from_dicts(self):
        """测试按kind判别正文块"""
        content = ContentModel(blocks=[{"kind": "paragraph", "text": "hello"}])
        assert isinstance(content.blocks[0], ParagraphBlock)


class TestRenderableTree:
    """可渲染节点树测试"""

    def test_table_node_cells_stringified(self):
        """测试栅格表格与矢量表格一样接受数字单元格"""
        node = TableNode(columns=["Roll", "Name", "DOB"], rows=[[1, "Aarav", None]])
        assert node.rows == [["1", "Aarav", ""]]

    def test_markers_in_document_order(self, card_tree: ContainerNode):
        """测试分页标记按文档顺序"""
        markers = find_page_markers(card_tree)
        assert len(markers) == 3
        assert [m.children[0].text for m in markers] == [
            "Progress Card page 1",
            "Progress Card page 2",
            "Progress Card page 3",
        ]

    def test_nested_marker_not_separate_page(self):
        """测试嵌套标记不单独成页"""
        inner = PageMarker(children=[TextNode(text="inner")])
        outer = PageMarker(children=[inner])
        tree = ContainerNode(children=[outer, PageMarker()])
        markers = find_page_markers(tree)
        assert len(markers) == 2
        assert markers[0] is outer

    def test_no_markers(self):
        """测试无分页标记"""
        assert find_page_markers(ContainerNode(children=[TextNode(text="x")])) == []

    def test_collect_images_dedup(self, good_image: ImageResource):
        """测试同一图片多处引用只收集一次"""
        tree = ContainerNode(
            children=[ImageNode(image=good_image), ContainerNode(children=[ImageNode(image=good_image)])]
        )
        assert collect_images(tree) == [good_image]

    def test_discriminated_children(self):
        """测试按kind判别子节点"""
        tree = ContainerNode(children=[{"kind": "text", "text": "a"}, {"kind": "page", "children": []}])
        assert isinstance(tree.children[0], TextNode)
        assert isinstance(tree.children[1], PageMarker)


class TestImageResource:
    """图片资源测试"""

    def test_load_sync_ok(self, good_image: ImageResource):
        """测试同步加载"""
        img = good_image.load_sync()
        assert img is not None
        assert good_image.state == ImageState.LOADED
        assert img.size == (40, 30)

    def test_load_sync_broken(self, broken_image: ImageResource):
        """测试解码失败标记为failed"""
        assert broken_image.load_sync() is None
        assert broken_image.state == ImageState.FAILED
        assert broken_image.error

    def test_missing_source(self, temp_dir):
        """测试文件不存在"""
        image = ImageResource(source=str(temp_dir / "missing.png"))
        assert image.load_sync() is None
        assert image.state == ImageState.FAILED
        assert image.label == "missing.png"

    @pytest.mark.asyncio
    async def test_async_load_once(self, png_bytes: bytes):
        """测试多处并发引用只加载一次"""
        calls = []

        async def fetcher(resource):
            calls.append(resource.source)
            return png_bytes

        image = ImageResource(source="remote/photo.png")
        await image.load(fetcher)
        await image.load(fetcher)
        assert calls == ["remote/photo.png"]
        assert image.state == ImageState.LOADED

    def test_failed_does_not_override_loaded(self, good_image: ImageResource):
        """测试终态不可回退"""
        good_image.load_sync()
        good_image.mark_failed("late timeout")
        assert good_image.state == ImageState.LOADED


class TestPageStream:
    """页流测试"""

    def test_append_order(self):
        """测试只追加且保持顺序"""
        stream = PageStream()
        pages = [VectorPage(210, 297), VectorPage(210, 297)]
        for p in pages:
            stream.append(p)
        assert list(stream) == pages
        assert len(stream) == 2

    def test_consume_once(self):
        """测试只能消费一次"""
        stream = PageStream()
        stream.append(VectorPage(210, 297))
        assert len(stream.consume()) == 1
        with pytest.raises(GenerationError):
            stream.consume()
        with pytest.raises(GenerationError):
            stream.append(VectorPage(210, 297))

    def test_flags_dedup(self):
        """测试告警去重"""
        stream = PageStream()
        stream.add_flag("image_failed:a")
        stream.add_flag("image_failed:a")
        assert stream.flags == ["image_failed:a"]

    def test_bitmap_pixel_size(self):
        """测试位图像素尺寸"""
        from PIL import Image

        page = BitmapPage(Image.new("RGB", (30, 60)), 10, 20, scale=3)
        assert page.pixel_size == (30, 60)


class TestGenerationJob:
    """任务模型测试"""

    @pytest.fixture
    def job(self, vector_request: GenerationRequest) -> GenerationJob:
        return GenerationJob(request=vector_request)

    def test_mark_running(self, job: GenerationJob):
        """测试标记运行中"""
        job.mark_running("TEST_STAGE")
        assert job.status == JobStatus.RUNNING
        assert job.progress.stage == "TEST_STAGE"
        assert job.started_at is not None

    def test_mark_succeeded(self, job: GenerationJob):
        """测试标记成功"""
        job.mark_running()
        job.mark_succeeded()
        assert job.status == JobStatus.SUCCEEDED
        assert job.progress.percent == 100

    def test_mark_failed(self, job: GenerationJob):
        """测试标记失败"""
        job.mark_running()
        job.mark_failed("Test error")
        assert job.status == JobStatus.FAILED
        assert "Test error" in job.errors

    def test_mark_cancelled(self, job: GenerationJob):
        """测试标记取消"""
        job.mark_cancelled("user")
        assert job.status == JobStatus.CANCELLED
        assert job.finished_at is not None

    def test_add_flag(self, job: GenerationJob):
        """测试添加告警"""
        job.add_flag("Test flag")
        job.add_flag("Test flag")
        assert job.flags == ["Test flag"]

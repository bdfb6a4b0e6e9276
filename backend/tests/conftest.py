"""
pytest 配置与公共 fixtures

使用方式：
    def test_something(runtime_config, sample_content):
        assert runtime_config.page.width_mm == 210
"""

from __future__ import annotations

import io
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from PIL import Image

from docrender.config import (
    DocumentProfile,
    PageConfig,
    ProfileCatalog,
    RasterConfig,
    RuntimeConfig,
)
from docrender.models import (
    Backend,
    ColumnSpec,
    ContainerNode,
    ContentModel,
    FooterBlock,
    GenerationRequest,
    HeaderBlock,
    HeaderPolicy,
    ImageNode,
    ImageResource,
    KeyValueBlock,
    Orientation,
    PageMarker,
    ParagraphBlock,
    SignatureBlock,
    TableBlock,
    TableNode,
    TableSpec,
    TextNode,
)
from docrender.raster import RenderHost


# ============================================================================
# 配置 Fixtures
# ============================================================================

@pytest.fixture
def runtime_config(temp_dir: Path) -> RuntimeConfig:
    """运行期配置（测试用短超时，输出到临时目录）"""
    config = RuntimeConfig(
        raster=RasterConfig(
            settle_timeout_ms=2000,
            pre_capture_delay_ms=0,
            image_timeout_ms=300,
            oversampling=1,
        ),
    )
    config.output.output_dir = temp_dir / "output"
    return config


@pytest.fixture
def page_config() -> PageConfig:
    """页面几何（默认A4纵向）"""
    return PageConfig()


@pytest.fixture
def profile_catalog() -> ProfileCatalog:
    """mock文档类型配置"""
    return ProfileCatalog(
        schema_version="1.0",
        profiles={
            "roll_statement": DocumentProfile(
                backend=Backend.VECTOR,
                page_numbers=True,
                filename_pattern="Roll_Statement_{class_name}",
            ),
            "sba_result_sheet": DocumentProfile(
                backend=Backend.VECTOR,
                orientation=Orientation.LANDSCAPE,
                header_policy=HeaderPolicy.EVERY_PAGE,
            ),
            "holistic_progress_card": DocumentProfile(
                backend=Backend.RASTER,
                filename_pattern="Progress_Card_{student_name}",
            ),
        },
    )


# ============================================================================
# 文本度量 Fixtures
# ============================================================================

def fixed_measure(text: str, font_name: str, font_size: float) -> float:
    """等宽度量：每字符2mm（与字体无关，便于断言）"""
    return len(text) * 2.0


@pytest.fixture
def measure():
    return fixed_measure


# ============================================================================
# 图片 Fixtures
# ============================================================================

def make_png_bytes(size: tuple[int, int] = (40, 30), color: tuple[int, int, int] = (200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    """有效PNG字节"""
    return make_png_bytes()


@pytest.fixture
def png_factory():
    """PNG字节工厂"""
    return make_png_bytes


@pytest.fixture
def good_image(png_bytes: bytes) -> ImageResource:
    return ImageResource(data=png_bytes, alt="photo")


@pytest.fixture
def broken_image() -> ImageResource:
    return ImageResource(data=b"not an image", alt="broken")


# ============================================================================
# 内容模型 Fixtures
# ============================================================================

@pytest.fixture
def sample_table() -> TableSpec:
    """示例花名册表格"""
    return TableSpec(
        columns=[
            ColumnSpec(label="Roll", width=20),
            ColumnSpec(label="Name"),
            ColumnSpec(label="Category"),
        ],
        rows=[[i, f"Student {i}", "GEN"] for i in range(1, 6)],
    )


@pytest.fixture
def sample_content(sample_table: TableSpec) -> ContentModel:
    """示例矢量内容（页眉/键值/表格/签名/页脚）"""
    return ContentModel(
        title="Roll Statement",
        header=HeaderBlock(
            title="Govt. High School",
            subtitle_lines=["Main Road, District"],
            heading="Roll Statement 2025-26",
        ),
        blocks=[
            KeyValueBlock(rows=[("Class", "8"), ("Section", "A")]),
            ParagraphBlock(text="Students enrolled as on date."),
            TableBlock(table=sample_table),
        ],
        signature=SignatureBlock(labels=["Class Teacher", "Head of Institution"]),
        footer=FooterBlock(text="School seal"),
        page_numbers=True,
    )


@pytest.fixture
def vector_request() -> GenerationRequest:
    return GenerationRequest(doc_type="roll_statement", filename="Roll_Statement_8A", backend=Backend.VECTOR)


@pytest.fixture
def raster_request() -> GenerationRequest:
    return GenerationRequest(doc_type="holistic_progress_card", filename="Progress_Card", backend=Backend.RASTER)


# ============================================================================
# 可渲染节点树 Fixtures
# ============================================================================

def make_card_tree(pages: int = 2, images: list[ImageResource] | None = None) -> ContainerNode:
    """构造多页报告卡节点树（每页一个分页标记）"""
    images = images or []
    markers = []
    for i in range(pages):
        children = [
            TextNode(text=f"Progress Card page {i + 1}", font_size=18, bold=True, align="center"),
            TableNode(columns=["Subject", "Grade"], rows=[["English", "A"], ["Maths", "B+"]]),
        ]
        if i < len(images):
            children.append(ImageNode(image=images[i], width=80, height=80))
        markers.append(PageMarker(children=children))
    return ContainerNode(children=markers)


@pytest.fixture
def card_tree() -> ContainerNode:
    return make_card_tree(pages=3)


@pytest.fixture
def tree_factory():
    """节点树工厂"""
    return make_card_tree


@pytest.fixture
def render_host() -> RenderHost:
    """独立渲染宿主（不复用进程单例）"""
    return RenderHost()


# ============================================================================
# 文件 Fixtures
# ============================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)

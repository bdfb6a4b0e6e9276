"""
流水线阶段定义

职责：
1. 定义各阶段的名称与进度区间
2. 阶段顺序即执行顺序

测试要点：
- test_stage_order: 阶段顺序
- test_stage_progress_contiguous: 进度区间首尾相接
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StageEnum(str, Enum):
    """流水线阶段枚举"""
    RENDER_PAGES = "RENDER_PAGES"
    ASSEMBLE = "ASSEMBLE"
    WRITE_PDF = "WRITE_PDF"
    DELIVER = "DELIVER"


@dataclass
class PipelineStage:
    """流水线阶段"""
    name: str
    progress_start: int  # 进度起点（0-100）
    progress_end: int    # 进度终点


# 单份文档生成流水线各阶段配置
GENERATION_STAGES: list[PipelineStage] = [
    PipelineStage(StageEnum.RENDER_PAGES.value, 0, 70),
    PipelineStage(StageEnum.ASSEMBLE.value, 70, 80),
    PipelineStage(StageEnum.WRITE_PDF.value, 80, 95),
    PipelineStage(StageEnum.DELIVER.value, 95, 100),
]

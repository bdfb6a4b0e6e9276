"""
流水线模块 - 单份/批量文档生成编排

子模块：
- stages: 流水线各阶段定义
- executor: 流水线执行器与生成入口
"""

from .executor import GenerationExecutor, generate_batch, generate_document
from .stages import GENERATION_STAGES, PipelineStage, StageEnum

__all__ = [
    "PipelineStage",
    "StageEnum",
    "GENERATION_STAGES",
    "GenerationExecutor",
    "generate_document",
    "generate_batch",
]

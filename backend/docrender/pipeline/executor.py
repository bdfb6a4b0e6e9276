"""
流水线执行器 - 编排单份文档的生成

职责：
1. 按顺序执行 渲染 → 装配 → 写出 → 交付
2. 更新任务状态与进度
3. 阶段之间检查取消
4. 非致命告警（图片失败/行高钳制）记入任务flags，其余错误上抛

测试要点：
- test_execute_vector_document: 矢量文档完整生成
- test_execute_raster_document: 栅格文档完整生成
- test_cancel_marks_job: 取消后任务状态为cancelled
- test_write_failure_marks_job: 交付失败时任务失败且无残留文件
- test_batch_sequential: 批量生成逐份串行
"""

from __future__ import annotations

import logging
from typing import Any

from ..cancellation import CancellationToken
from ..config import RuntimeConfig, get_config
from ..interfaces import (
    DocRenderError,
    GenerationCancelled,
    IDeliverySink,
    IDocumentRenderer,
    IPdfWriter,
)
from ..models import Backend, GenerationJob, GenerationRequest, JobStatus
from ..output import DocumentAssembler, FileSink, PdfWriter
from ..renderers import get_renderer
from .stages import GENERATION_STAGES, PipelineStage, StageEnum

logger = logging.getLogger(__name__)


class GenerationExecutor:
    """流水线执行器"""

    def __init__(
        self,
        config: RuntimeConfig | None = None,
        writer: IPdfWriter | None = None,
        renderers: dict[Backend, IDocumentRenderer] | None = None,
    ):
        self.config = config or get_config()
        self.writer = writer or PdfWriter()
        self._renderers: dict[Backend, IDocumentRenderer] = dict(renderers or {})

    def renderer_for(self, backend: Backend) -> IDocumentRenderer:
        """按后端获取（并缓存）渲染策略"""
        if backend not in self._renderers:
            self._renderers[backend] = get_renderer(backend, self.config)
        return self._renderers[backend]

    async def execute(
        self,
        job: GenerationJob,
        source: Any,
        sink: IDeliverySink,
        token: CancellationToken | None = None,
    ) -> GenerationJob:
        """执行流水线"""
        job.mark_running()
        job.progress.message = "任务开始"
        request = job.request
        logger.info(f"[{job.job_id}] 开始生成: {request.doc_type} → {request.pdf_filename} ({request.backend.value})")

        context: dict[str, Any] = {"source": source}
        try:
            for stage in GENERATION_STAGES:
                if token is not None:
                    token.raise_if_cancelled()
                await self._execute_stage(job, stage, context, sink, token)

            job.mark_succeeded()
            job.progress.message = "任务完成"
            logger.info(f"[{job.job_id}] 生成完成: {job.page_count}页 → {job.output_path or request.pdf_filename}")
            return job

        except GenerationCancelled as e:
            logger.warning(f"[{job.job_id}] 生成已取消: {e}")
            job.mark_cancelled(str(e))
            job.progress.message = f"任务取消: {e}"
            raise
        except Exception as e:
            logger.exception(f"[{job.job_id}] 生成失败: {e}")
            job.mark_failed(str(e))
            job.progress.message = f"任务失败: {e}"
            raise

    async def _execute_stage(
        self,
        job: GenerationJob,
        stage: PipelineStage,
        context: dict[str, Any],
        sink: IDeliverySink,
        token: CancellationToken | None,
    ) -> None:
        """执行单个阶段"""
        job.progress.stage = stage.name
        job.progress.percent = stage.progress_start
        job.progress.message = f"开始阶段: {stage.name}"
        logger.info(f"[{job.job_id}] 开始阶段: {stage.name}")

        request = job.request
        try:
            if stage.name == StageEnum.RENDER_PAGES.value:
                renderer = self.renderer_for(request.backend)
                stream = await renderer.render(context["source"], request, token)
                for flag in stream.flags:
                    job.add_flag(flag)
                context["stream"] = stream

            elif stage.name == StageEnum.ASSEMBLE.value:
                assembler = DocumentAssembler(
                    page=self.config.page,
                    orientation=request.orientation,
                    overflow_policy=self.config.raster.overflow_policy,
                )
                context["pages"] = assembler.assemble(context["stream"])

            elif stage.name == StageEnum.WRITE_PDF.value:
                data = self.writer.write(context["pages"])
                job.page_count = self.writer.count_pages(data)
                context["data"] = data

            elif stage.name == StageEnum.DELIVER.value:
                job.output_path = sink.deliver(request.pdf_filename, context["data"])

        except GenerationCancelled:
            raise
        except Exception as e:
            logger.error(f"[{job.job_id}] 阶段失败 {stage.name}: {e}")
            job.add_flag(f"阶段失败:{stage.name}")
            raise

        job.progress.percent = stage.progress_end
        job.progress.message = f"完成阶段: {stage.name}"


async def generate_document(
    source: Any,
    request: GenerationRequest,
    sink: IDeliverySink | None = None,
    token: CancellationToken | None = None,
    config: RuntimeConfig | None = None,
    executor: GenerationExecutor | None = None,
) -> GenerationJob:
    """
    生成单份文档（界面事件处理器的入口）

    Args:
        source: ContentModel（矢量）或可渲染节点树（栅格）
        request: 生成请求（显式指定后端）
        sink: 交付接收端，默认写入配置的输出目录

    Returns:
        已完成的任务（失败/取消时异常上抛，任务状态已更新）
    """
    config = config or get_config()
    executor = executor or GenerationExecutor(config)
    sink = sink or FileSink(config.output.output_dir)
    job = GenerationJob(request=request)
    await executor.execute(job, source, sink, token)
    return job


async def generate_batch(
    items: list[tuple[Any, GenerationRequest]],
    sink: IDeliverySink | None = None,
    token: CancellationToken | None = None,
    config: RuntimeConfig | None = None,
    executor: GenerationExecutor | None = None,
) -> list[GenerationJob]:
    """
    批量生成（逐份串行）

    单份失败记入其任务后继续下一份；取消则中止整个批次
    """
    config = config or get_config()
    executor = executor or GenerationExecutor(config)
    sink = sink or FileSink(config.output.output_dir)

    jobs: list[GenerationJob] = []
    for index, (source, request) in enumerate(items, start=1):
        job = GenerationJob(request=request)
        jobs.append(job)
        logger.info(f"批量生成 {index}/{len(items)}: {request.pdf_filename}")
        try:
            await executor.execute(job, source, sink, token)
        except GenerationCancelled:
            raise
        except DocRenderError as e:
            logger.warning(f"批量生成第{index}份失败，继续下一份: {e}")

    succeeded = sum(1 for j in jobs if j.status == JobStatus.SUCCEEDED)
    logger.info(f"批量生成完成: 成功{succeeded}/{len(items)}")
    return jobs

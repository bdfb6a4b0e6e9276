"""
交付接收端 - 保存到磁盘或留在内存

FileSink 先写入同目录临时文件，再原子替换为目标文件；
任何失败都会删除临时文件，不留半成品。
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from ..interfaces import IDeliverySink, WriteError

logger = logging.getLogger(__name__)


class FileSink(IDeliverySink):
    """磁盘接收端（原子写入）"""

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)

    def deliver(self, filename: str, data: bytes) -> Path:
        if not filename or Path(filename).name != filename:
            raise WriteError(f"非法文件名: {filename!r}")

        target = self.output_dir / filename
        tmp_path: Path | None = None
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".tmp_", suffix=".pdf", dir=self.output_dir)
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, target)
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise WriteError(f"写入失败: {target}: {e}") from e

        logger.info(f"文档已写出: {target} ({len(data)}字节)")
        return target


class MemorySink(IDeliverySink):
    """内存接收端（下载场景/测试）"""

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}

    def deliver(self, filename: str, data: bytes) -> None:
        self.files[filename] = data
        logger.debug(f"文档已交付到内存: {filename} ({len(data)}字节)")
        return None

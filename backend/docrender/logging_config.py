"""
日志配置 - 控制台输出 + 可选滚动文件
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

from .config import RuntimeConfig, get_config


def setup_logging(config: RuntimeConfig | None = None, log_level: str | None = None) -> None:
    """
    配置根日志器

    Args:
        config: 运行期配置，默认取全局配置
        log_level: 覆盖配置中的日志级别
    """
    log_cfg = (config or get_config()).logging
    level = getattr(logging, (log_level or log_cfg.log_level).upper(), logging.INFO)
    formatter = logging.Formatter(log_cfg.format, datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_cfg.log_to_file:
        log_path = Path(log_cfg.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=log_cfg.max_bytes,
            backupCount=log_cfg.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # 第三方库降噪
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("PyPDF2").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"日志已初始化: level={logging.getLevelName(level)}")

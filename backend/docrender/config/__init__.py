"""
配置层 - 加载文档类型配置与运行期配置

职责：
- 加载 documents/document_profiles.yaml（文档类型→后端/方向/页眉策略）
- 加载 documents/runtime.yaml（页面几何/截取/输出/日志参数）
- 提供类型安全的配置访问接口
"""

from .runtime_config import (
    LoggingConfig,
    OutputConfig,
    PageConfig,
    RasterConfig,
    RuntimeConfig,
    get_config,
    reload_config,
)
from .profile_loader import DocumentProfile, ProfileCatalog, ProfileLoader, load_profiles

__all__ = [
    "ProfileLoader",
    "ProfileCatalog",
    "DocumentProfile",
    "load_profiles",
    "RuntimeConfig",
    "PageConfig",
    "RasterConfig",
    "OutputConfig",
    "LoggingConfig",
    "get_config",
    "reload_config",
]

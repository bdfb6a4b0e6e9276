"""
文档类型配置加载器 - 读取 documents/document_profiles.yaml

职责：
- 解析YAML并提供类型安全访问
- 为每种文档类型给出渲染后端/纸张方向/页眉策略/页码开关
- 缓存加载结果（避免重复解析）

使用方式：
    catalog = ProfileLoader.load("documents/document_profiles.yaml")
    profile = catalog.get_profile("roll_statement")
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from ..interfaces import GenerationError
from ..models import Backend, HeaderPolicy, Orientation
from .runtime_config import RuntimeConfig, get_config


class DocumentProfile(BaseModel):
    """单种文档类型的生成配置"""
    backend: Backend
    orientation: Orientation = Orientation.PORTRAIT
    header_policy: HeaderPolicy = HeaderPolicy.FIRST_PAGE
    page_numbers: bool = False
    filename_pattern: str = "{doc_type}"
    description: str | None = None


class ProfileCatalog(BaseModel):
    """文档类型配置集（document_profiles.yaml 的结构化表示）"""
    schema_version: str
    profiles: dict[str, DocumentProfile] = Field(default_factory=dict)

    def get_profile(self, doc_type: str) -> DocumentProfile:
        """获取文档类型配置"""
        profile = self.profiles.get(doc_type)
        if profile is None:
            raise GenerationError(f"未知文档类型: {doc_type}")
        return profile

    def doc_types_for(self, backend: Backend) -> list[str]:
        """列出使用指定后端的文档类型"""
        return sorted(k for k, v in self.profiles.items() if v.backend == backend)


class ProfileLoader:
    """配置加载器（单例模式+缓存）"""

    _instance: ProfileLoader | None = None

    def __new__(cls) -> ProfileLoader:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    @lru_cache(maxsize=1)
    def load(cls, profiles_path: str | Path = "documents/document_profiles.yaml") -> ProfileCatalog:
        """加载并缓存配置"""
        path = Path(profiles_path)
        if not path.exists():
            raise FileNotFoundError(f"文档类型配置不存在: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        return ProfileCatalog(**data)

    @classmethod
    def reload(cls, profiles_path: str | Path = "documents/document_profiles.yaml") -> ProfileCatalog:
        """强制重新加载（清除缓存）"""
        cls.load.cache_clear()
        return cls.load(profiles_path)


# 便捷函数
def load_profiles(config: RuntimeConfig | None = None) -> ProfileCatalog:
    """按运行期配置的 profiles_path 加载文档类型配置"""
    config = config or get_config()
    return ProfileLoader.load(config.profiles_path)

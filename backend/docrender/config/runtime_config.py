"""
运行期配置 - 读取 documents/runtime.yaml

职责：
- 加载页面几何/栅格截取/输出/日志等运行参数
- 提供环境变量覆盖机制（前缀 DOCRENDER_）
- 类型安全的配置访问
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class PageConfig(BaseModel):
    """页面几何配置（单位mm）"""

    width_mm: float = 210.0
    height_mm: float = 297.0
    margin_top: float = 15.0
    margin_bottom: float = 15.0
    margin_left: float = 14.0
    margin_right: float = 14.0
    line_height_mm: float = 5.0
    font_name: str = "Helvetica"
    font_size: float = 10.0
    cell_padding_mm: float = 1.5
    min_row_height_mm: float = 7.0
    signature_offset_mm: float = 20.0
    page_number_offset_mm: float = 10.0
    clamp_oversized_rows: bool = True


class RasterConfig(BaseModel):
    """栅格截取配置"""

    oversampling: float = 3.0
    css_px_per_mm: float = 96 / 25.4
    settle_timeout_ms: int = 500
    pre_capture_delay_ms: int = 50
    image_timeout_ms: int = 5000
    chunk_nodes: int = 32
    font_path: str | None = None
    overflow_policy: Literal["compress", "slice"] = "compress"


class OutputConfig(BaseModel):
    """输出配置"""

    output_dir: Path = Path("output")


class LoggingConfig(BaseModel):
    """日志配置"""

    log_level: str = "INFO"
    log_to_file: bool = False
    log_file: str = "logs/docrender.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_bytes: int = 10485760
    backup_count: int = 5


class RuntimeConfig(BaseSettings):
    """运行期配置（支持环境变量覆盖）"""

    profiles_path: Path = Path("documents/document_profiles.yaml")

    page: PageConfig = Field(default_factory=PageConfig)
    raster: RasterConfig = Field(default_factory=RasterConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": "DOCRENDER_",
        "env_nested_delimiter": "__",
        "arbitrary_types_allowed": True,
    }

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> RuntimeConfig:
        """从YAML文件加载配置"""
        path = Path(yaml_path)
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        runtime_opts = data.get("runtime_options", {})

        config = cls(
            page=PageConfig(**cls._extract(runtime_opts, "page")),
            raster=RasterConfig(**cls._extract(runtime_opts, "raster")),
            output=OutputConfig(**cls._extract(runtime_opts, "output")),
            logging=LoggingConfig(**cls._extract(runtime_opts, "logging")),
        )

        config._resolve_paths(base_dir=path.parent)
        return config

    @staticmethod
    def _extract(data: dict[str, Any], key: str) -> dict[str, Any]:
        """提取并展平配置"""
        section = data.get(key, {}) or {}
        result = {}
        for k, v in section.items():
            if isinstance(v, dict) and "default" in v:
                result[k] = v["default"]
            elif not isinstance(v, dict):
                result[k] = v
        return result

    def _resolve_paths(self, base_dir: Path) -> None:
        """解析相对字体路径（基于配置文件所在目录）"""
        if self.raster.font_path:
            font_path = Path(self.raster.font_path)
            if not font_path.is_absolute():
                self.raster.font_path = str((base_dir / font_path).resolve())

    @property
    def usable_height_mm(self) -> float:
        """页内可用高度（页高减上下边距）"""
        return self.page.height_mm - self.page.margin_top - self.page.margin_bottom

    def ensure_dirs(self) -> None:
        """确保输出目录存在"""
        self.output.output_dir.mkdir(parents=True, exist_ok=True)


# 全局配置实例
_config: RuntimeConfig | None = None


def get_config() -> RuntimeConfig:
    """获取全局配置（惰性加载）"""
    global _config
    if _config is None:
        default_path = Path("documents/runtime.yaml")
        if not default_path.exists():
            fallback_path = Path("config/runtime.yaml")
            if fallback_path.exists():
                default_path = fallback_path
        _config = RuntimeConfig.from_yaml(default_path)
    return _config


def reload_config(yaml_path: str | Path | None = None) -> RuntimeConfig:
    """重新加载配置"""
    global _config
    path = yaml_path or "documents/runtime.yaml"
    _config = RuntimeConfig.from_yaml(path)
    return _config

"""
docrender 分页文档生成引擎 - 后端核心模块

模块结构：
- config/     配置加载（运行参数/文档类型）
- models/     数据模型定义
- layout/     矢量路径坐标排版
- raster/     栅格路径离屏挂载与逐页截取
- output/     装配/PDF写出/交付/表格导出
- pipeline/   生成流水线与任务状态
"""

__version__ = "0.1.0"

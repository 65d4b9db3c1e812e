"""
Configuration Management Module
统一配置管理，凭据与流水线参数在进程启动时构建一次
"""
from .settings import (
    Settings,
    ProviderSettings,
    PipelineSettings,
    StorageSettings,
)

__all__ = [
    "Settings",
    "ProviderSettings",
    "PipelineSettings",
    "StorageSettings",
]

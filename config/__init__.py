"""
Configuration Management Module
统一配置管理
"""
from .settings import (
    Settings,
    get_settings,
    get_retry_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "get_retry_settings",
]

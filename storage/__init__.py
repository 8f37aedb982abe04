"""
Storage Module
存储模块 - 下载进度持久化
"""
from .progress_store import ProgressStore

__all__ = [
    "ProgressStore",
]

"""
Utils Module
通用工具: 日志、异常、重试
"""
from .logger import setup_logger, console
from .exceptions import (
    FetchError,
    ConfigurationError,
    AuthError,
    NotFoundError,
    TransientFetchError,
    NoAnswerAvailable,
    StorageError,
)
from .retry import RetryExecutor

__all__ = [
    "setup_logger",
    "console",
    "FetchError",
    "ConfigurationError",
    "AuthError",
    "NotFoundError",
    "TransientFetchError",
    "NoAnswerAvailable",
    "StorageError",
    "RetryExecutor",
]

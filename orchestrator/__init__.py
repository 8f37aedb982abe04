"""
Orchestrator Module
单题流水线、完成判定与分块调度
"""

from .evaluator import evaluate
from .worker import ItemFetcher
from .scheduler import DownloadScheduler

__all__ = [
    "evaluate",
    "ItemFetcher",
    "DownloadScheduler",
]

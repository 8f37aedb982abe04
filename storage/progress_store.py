"""
Progress Store
断点续传的持久化进度记录

文件格式 (.download-progress.json):
    {
      "completed": ["1", "2"],
      "failed": {"3": {"name", "slug", "reasons", "lastAttempt", "statusSnapshot"}},
      "lastUpdated": "2025-01-01T00:00:00+00:00"
    }

每处理完一道题就整体重写一次；写入先落到同目录临时文件再 os.replace，
文件要么是旧的完整状态，要么是新的完整状态。
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union
from uuid import uuid4

from models import FailureDetail, Item, ItemResult, ItemStatus
from utils.exceptions import StorageError


logger = logging.getLogger(__name__)


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _id_sort_key(item_id: str):
    return (0, int(item_id), "") if item_id.isdigit() else (1, 0, item_id)


class ProgressStore:
    """
    题目完成状态存储

    completed 与 failed 互斥: 成功时从 failed 移除，失败时从 completed 移除。
    所有读改写都在 asyncio.Lock 内完成，持久化也在锁内，每题一次。
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.completed: Set[str] = set()
        self.failed: Dict[str, FailureDetail] = {}
        self.last_updated: Optional[str] = None
        self.succeeded_count = 0
        self.failed_count = 0
        self._lock = asyncio.Lock()

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ProgressStore":
        """
        从磁盘加载进度，文件不存在或损坏时从空状态开始

        Args:
            path: 进度文件路径
        """
        store = cls(path)
        if not store.path.exists():
            return store

        try:
            data = json.loads(store.path.read_text(encoding="utf-8"))
            store.completed = {str(i) for i in data.get("completed") or []}
            store.failed = {
                str(k): FailureDetail.model_validate(v)
                for k, v in (data.get("failed") or {}).items()
            }
            store.last_updated = data.get("lastUpdated")
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Could not read progress file {store.path}, starting fresh: {e}")
            store.completed = set()
            store.failed = {}
            store.last_updated = None
            return store

        # 旧文件可能同时出现在两侧，以 completed 为准
        for item_id in store.completed & set(store.failed):
            store.failed.pop(item_id, None)
        return store

    def is_completed(self, item_id: str) -> bool:
        return str(item_id) in self.completed

    async def record(self, result: ItemResult) -> ItemStatus:
        """
        合并单题结果并立即持久化

        Returns:
            合并后的状态 (COMPLETE 或 PARTIAL/FAILED)
        """
        evaluation = result.evaluation
        status = evaluation.status if evaluation else ItemStatus.FAILED
        async with self._lock:
            item_id = result.item.id
            if status == ItemStatus.COMPLETE:
                self.completed.add(item_id)
                self.failed.pop(item_id, None)
                self.succeeded_count += 1
            else:
                reasons = list(evaluation.reasons) if evaluation else []
                if result.error:
                    reasons.append(result.error)
                self._mark_failed(result.item, reasons, result.status_snapshot())
            self.save()
        return status

    async def record_exception(self, item: Item, error: BaseException) -> None:
        """记录未能产出 ItemResult 的异常"""
        async with self._lock:
            self._mark_failed(item, [f"Exception: {error}"], {})
            self.save()

    async def flush(self) -> None:
        async with self._lock:
            self.save()

    def _mark_failed(self, item: Item, reasons: List[str], snapshot: Dict[str, str]) -> None:
        self.completed.discard(item.id)
        self.failed[item.id] = FailureDetail(
            name=item.name,
            slug=item.slug,
            reasons=reasons,
            last_attempt=_utcnow_iso(),
            status_snapshot=snapshot,
        )
        self.failed_count += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completed": sorted(self.completed, key=_id_sort_key),
            "failed": {
                k: v.model_dump(by_alias=True)
                for k, v in sorted(self.failed.items(), key=lambda kv: _id_sort_key(kv[0]))
            },
            "lastUpdated": self.last_updated,
        }

    def save(self) -> None:
        """原子写入: 临时文件 + fsync + os.replace"""
        self.last_updated = _utcnow_iso()
        payload = json.dumps(self.to_dict(), ensure_ascii=False, indent=2) + "\n"

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.parent / f".{self.path.name}.{uuid4().hex}.tmp"
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise StorageError(f"Failed to persist progress to {self.path}: {e}") from e

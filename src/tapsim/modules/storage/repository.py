"""
任务集合持久化

整个任务集合序列化为 JSON，保存在 kv_store 表中固定键（默认 "tasks"）下。
读写失败统一包装为 PersistenceFailure 抛给调用方。
"""
from __future__ import annotations

import json
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...core.config import settings
from ...core.errors import PersistenceFailure, TapsimError
from ...core.logger import logger
from ...db.base import SessionLocal
from ...db.models import KeyValue
from ..tasks.model import Task


class TaskRepository:
    """任务集合的键值存储适配器"""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        key: Optional[str] = None,
    ) -> None:
        self._session_factory = session_factory
        self.key = key or settings.storage_key
        self._log = logger.bind(module="TaskRepository")

    def load(self) -> List[Task]:
        """读取任务集合；不存在时返回空列表"""
        try:
            with self._session_factory() as db:
                row = db.get(KeyValue, self.key)
                raw = row.value if row is not None else None
        except SQLAlchemyError as e:
            self._log.error(f"读取任务失败: {e}")
            raise PersistenceFailure(f"读取任务失败: {e}") from e

        if not raw:
            return []

        try:
            data = json.loads(raw)
            tasks = [Task.from_dict(item) for item in data]
        except (ValueError, KeyError, TypeError, TapsimError) as e:
            self._log.error(f"任务数据损坏: {e}")
            raise PersistenceFailure(f"任务数据损坏: {e}") from e

        self._log.info(f"已加载 {len(tasks)} 个任务")
        return tasks

    def save(self, tasks: List[Task]) -> None:
        """整体覆盖保存任务集合"""
        payload = json.dumps([t.to_dict() for t in tasks], ensure_ascii=False)
        try:
            with self._session_factory() as db:
                try:
                    row = db.get(KeyValue, self.key)
                    if row is None:
                        db.add(KeyValue(key=self.key, value=payload))
                    else:
                        row.value = payload
                    db.commit()
                except SQLAlchemyError:
                    db.rollback()
                    raise
        except SQLAlchemyError as e:
            self._log.error(f"保存任务失败: {e}")
            raise PersistenceFailure(f"保存任务失败: {e}") from e
        self._log.debug(f"已保存 {len(tasks)} 个任务")


__all__ = ["TaskRepository"]

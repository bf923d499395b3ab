"""
执行服务：后台逐个执行任务

职责：
- 已有任务执行时拒绝再次启动
- 执行期间在 AppState 中把该任务标记为只读，并取消其积木上的选区
- 提供停止（取消令牌）、状态查询和最近一次执行报告
"""
from __future__ import annotations

import asyncio
from typing import Optional

from ...core.errors import EngineBusyError, TaskNotFoundError
from ...core.logger import logger
from ..tasks.state import AppState
from .engine import ExecutionEngine
from .types import CancelToken, RunReport


class ExecutorService:
    def __init__(self, engine: ExecutionEngine, state: AppState) -> None:
        self.engine = engine
        self.state = state
        self._run: Optional[asyncio.Task] = None
        self._token: Optional[CancelToken] = None
        self._task_id: Optional[int] = None
        self.last_report: Optional[RunReport] = None
        self._log = logger.bind(module="ExecutorService")

    @property
    def running(self) -> bool:
        return self._run is not None and not self._run.done()

    def start(self, task_id: Optional[int] = None) -> asyncio.Task:
        """开始执行任务（默认执行当前任务）

        必须在运行中的事件循环内调用
        """
        if self.running or self.engine.busy:
            raise EngineBusyError("已有任务正在执行")
        if task_id is None:
            if self.state.current_task is None:
                raise TaskNotFoundError("未选择任务")
            task = self.state.current_task
        else:
            task = self.state.get_task(task_id)

        self._token = CancelToken()
        self._task_id = task.id
        self.state.running_task_id = task.id
        self.state.cancel_selection(task.id)
        self._run = asyncio.create_task(self._execute(task, self._token))
        return self._run

    async def _execute(self, task, token: CancelToken) -> RunReport:
        try:
            report = await self.engine.execute_task(task, token)
            self.last_report = report
            return report
        finally:
            self.state.running_task_id = None

    async def run(self, task_id: Optional[int] = None) -> RunReport:
        """启动并等待执行完成"""
        return await self.start(task_id)

    def stop(self) -> bool:
        """请求正在执行的任务在下一个积木边界停止"""
        if not self.running or self._token is None:
            return False
        self._token.cancel()
        self._log.info(f"请求停止任务: {self._task_id}")
        return True

    async def wait(self) -> Optional[RunReport]:
        if self._run is None:
            return self.last_report
        return await self._run

    async def shutdown(self) -> None:
        if self.running:
            self.stop()
            try:
                await self._run
            except asyncio.CancelledError:
                pass

    def status(self) -> dict:
        return {
            "running": self.running,
            "task_id": self._task_id if self.running else None,
            "executing": list(self.engine.executing),
            "last_report": self.last_report.to_dict() if self.last_report else None,
        }


__all__ = ["ExecutorService"]

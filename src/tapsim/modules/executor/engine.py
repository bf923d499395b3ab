"""
执行引擎

按深度优先、从左到右的顺序解释任务的积木树，逐个执行带时长的点击效果。
兄弟积木之间、嵌套积木之间都严格串行；唯一的挂起点是点击效果结束前的等待。

单个积木内的异常会被捕获、记录并计入 RunReport，外层序列继续执行。
"""
from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, List, Optional

from ...core.config import settings
from ...core.constants import RunStatus
from ...core.errors import EngineBusyError, ExecutionEffectFailure
from ...core.logger import logger
from ..tasks.model import Block, FunctionBlock, LoopBlock, TapBlock, Task
from ..ui.presenter import PresentationAdapter, safe_notify
from .types import BlockError, CancelToken, RunCancelled, RunReport, TapEvent

SleepFunc = Callable[[float], Awaitable[None]]


class ExecutionEngine:
    """积木树解释器（同一实例同一时刻只执行一个任务）"""

    def __init__(
        self,
        presenter: Optional[PresentationAdapter] = None,
        *,
        tap_duration: Optional[float] = None,
        sleep: Optional[SleepFunc] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.presenter = presenter
        # 秒
        self.tap_duration = settings.tap_duration if tap_duration is None else float(tap_duration)
        self._sleep = sleep or asyncio.sleep
        self._rng = rng or random.Random()
        self._busy = False
        self.executing: List[str] = []
        self._log = logger.bind(module="ExecutionEngine")

    @property
    def busy(self) -> bool:
        return self._busy

    async def execute_task(self, task: Task, token: Optional[CancelToken] = None) -> RunReport:
        """
        执行整个任务

        Args:
            task: 要执行的任务（执行期间只读）
            token: 取消令牌

        Returns:
            执行报告；积木级错误已被吞掉并记录在 report.errors 中
        """
        if self._busy:
            raise EngineBusyError("已有任务正在执行")
        self._busy = True
        token = token or CancelToken()
        report = RunReport(task_id=task.id)

        try:
            if not task.blocks:
                self._log.warning(f"没有可执行的积木: task={task.id}")
                return report.finish(RunStatus.EMPTY)

            self._log.info(f"开始执行任务: {task.name} (id={task.id}, 积木数={len(task.blocks)})")
            try:
                for block in task.blocks:
                    await self.execute_block(block, token, report)
            except RunCancelled:
                report.finish(RunStatus.CANCELLED)
                self._log.warning(f"任务已停止: {task.name}, 已执行点击={report.effects}")
                return report

            if report.errors:
                report.finish(RunStatus.FAILED)
                self._log.error(
                    f"任务执行完成但有 {report.error_count} 个积木出错: {task.name}"
                )
            else:
                report.finish(RunStatus.SUCCEEDED)
                self._log.success(f"任务执行完成: {task.name}, 点击={report.effects}")
            return report
        finally:
            self.executing.clear()
            self._busy = False

    async def execute_block(
        self,
        block: Block,
        token: Optional[CancelToken] = None,
        report: Optional[RunReport] = None,
    ) -> None:
        """按积木类型分派执行；异常只终止本积木剩余的工作"""
        token = token or CancelToken()
        if report is None:
            report = RunReport(task_id=0)
        token.raise_if_cancelled()

        safe_notify(self.presenter, "notify_block_enter", block.id)
        self.executing.append(block.id)
        report.blocks_executed += 1
        try:
            if isinstance(block, TapBlock):
                await self._execute_tap(block, report)
            elif isinstance(block, LoopBlock):
                for _ in range(block.effective_iterations):
                    for child in block.blocks:
                        await self.execute_block(child, token, report)
            elif isinstance(block, FunctionBlock):
                for child in block.blocks:
                    await self.execute_block(child, token, report)
            else:
                raise ExecutionEffectFailure(f"无法执行的积木: {block!r}", getattr(block, "id", None))
        except RunCancelled:
            raise
        except Exception as e:
            self._log.error(f"积木执行出错: block={block.id}, {e}")
            report.errors.append(BlockError(block_id=block.id, message=str(e)))
        finally:
            self.executing.pop()
            safe_notify(self.presenter, "notify_block_exit", block.id)

    async def _execute_tap(self, block: TapBlock, report: RunReport) -> None:
        if not block.configured:
            # 未配置区域的点击积木是空操作
            report.skipped_unconfigured += 1
            self._log.debug(f"点击积木未配置区域，跳过: {block.id}")
            return

        region = block.region
        x = region.left + self._rng.random() * region.width
        y = region.top + self._rng.random() * region.height
        await self.perform_tap(x, y, block.id)
        report.taps.append(TapEvent(block_id=block.id, x=x, y=y))

    async def perform_tap(self, x: float, y: float, block_id: Optional[str] = None) -> None:
        """模拟点击：发出反馈并挂起 tap_duration 秒"""
        if self.presenter is not None and hasattr(self.presenter, "notify_tap"):
            safe_notify(self.presenter, "notify_tap", block_id, x, y)
        self._log.info(f"点击: ({x:.1f}, {y:.1f})")
        try:
            await self._sleep(self.tap_duration)
        except Exception as e:
            raise ExecutionEffectFailure(f"点击效果失败: {e}", block_id) from e


__all__ = ["ExecutionEngine"]

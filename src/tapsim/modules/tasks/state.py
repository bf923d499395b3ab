"""
应用状态

显式持有任务集合、当前任务和区域选择器，替代全局共享状态。
所有修改都会立即保存；保存失败时恢复修改前的内存状态并抛出 PersistenceFailure。
"""
from __future__ import annotations

import copy
import time
from contextlib import contextmanager
from typing import List, Optional, Union

from ...core.config import settings
from ...core.constants import BlockType, DEFAULT_TASK_NAME
from ...core.errors import (
    EngineBusyError,
    InvalidBlockError,
    PersistenceFailure,
    TaskNotFoundError,
)
from ...core.logger import logger
from ..geometry import Point, Rect, SurfaceBounds
from ..storage.repository import TaskRepository
from ..ui.presenter import PresentationAdapter, safe_notify
from ..ui.selector import RegionSelector
from .model import Block, LoopBlock, TapBlock, Task, normalize_iterations, parse_kind


class AppState:
    """任务集合 + 当前任务 + 选区状态"""

    def __init__(
        self,
        repository: TaskRepository,
        presenter: Optional[PresentationAdapter] = None,
        bounds: Optional[SurfaceBounds] = None,
    ) -> None:
        self.repository = repository
        self.presenter = presenter
        self.tasks: List[Task] = []
        self.current_task: Optional[Task] = None
        # 正在执行的任务ID，执行期间其积木树只读
        self.running_task_id: Optional[int] = None
        bounds = bounds or SurfaceBounds(settings.device_width, settings.device_height)
        self.selector = RegionSelector(bounds, presenter=presenter, on_region=self._on_region_selected)
        self._log = logger.bind(module="AppState")

    # ── 加载 / 保存 ──

    def load(self) -> List[Task]:
        self.tasks = self.repository.load()
        self.current_task = None
        self.selector.disarm()
        safe_notify(self.presenter, "notify_task_list_changed")
        return self.tasks

    def save(self) -> None:
        self.repository.save(self.tasks)

    @contextmanager
    def _transaction(self):
        """修改并保存；保存失败时回滚到修改前的快照"""
        snapshot = copy.deepcopy(self.tasks)
        current_id = self.current_task.id if self.current_task else None
        armed_id = self.selector.armed.id if self.selector.armed else None
        yield
        try:
            self.save()
        except PersistenceFailure:
            self._log.error("保存失败，恢复修改前的任务集合")
            self.tasks = snapshot
            self.current_task = self._find_task(current_id)
            armed = self._find_block_anywhere(armed_id)
            if isinstance(armed, TapBlock):
                self.selector.arm(armed)
            else:
                self.selector.disarm()
            raise

    # ── 查询 ──

    def _find_task(self, task_id: Optional[int]) -> Optional[Task]:
        if task_id is None:
            return None
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def _owner_of(self, block: Block) -> Optional[Task]:
        for task in self.tasks:
            if task.find_block(block.id) is block:
                return task
        return None

    def _find_block_anywhere(self, block_id: Optional[str]) -> Optional[Block]:
        if block_id is None:
            return None
        for task in self.tasks:
            block = task.find_block(block_id)
            if block is not None:
                return block
        return None

    def get_task(self, task_id: int) -> Task:
        task = self._find_task(task_id)
        if task is None:
            raise TaskNotFoundError(f"任务不存在: {task_id}")
        return task

    def get_block(self, task_id: int, block_id: str) -> Block:
        block = self.get_task(task_id).find_block(block_id)
        if block is None:
            raise TaskNotFoundError(f"积木不存在: {block_id}")
        return block

    def _ensure_editable(self, task_id: int) -> None:
        if self.running_task_id is not None and self.running_task_id == task_id:
            raise EngineBusyError("任务正在执行，暂不能修改")

    def _next_task_id(self) -> int:
        now_ms = int(time.time() * 1000)
        last = max((t.id for t in self.tasks), default=0)
        return max(now_ms, last + 1)

    # ── 任务操作 ──

    def create_task(self, name: Optional[str] = None) -> Task:
        with self._transaction():
            task = Task(id=self._next_task_id(), name=name or DEFAULT_TASK_NAME)
            self.tasks.append(task)
            self.current_task = task
            self.selector.disarm()
        self._log.success(f"新任务已创建: {task.name} (id={task.id})")
        safe_notify(self.presenter, "notify_task_list_changed")
        return task

    def select_task(self, task_id: int) -> Task:
        task = self.get_task(task_id)
        self.current_task = task
        self.selector.disarm()
        self._log.info(f"切换当前任务: {task.name}")
        return task

    def rename_task(self, task_id: int, name: str) -> Task:
        task = self.get_task(task_id)
        with self._transaction():
            task.name = name
        safe_notify(self.presenter, "notify_task_list_changed")
        return task

    def delete_task(self, task_id: int) -> None:
        task = self.get_task(task_id)
        self._ensure_editable(task_id)
        with self._transaction():
            self.tasks.remove(task)
            if self.current_task is task:
                self.current_task = None
                self.selector.disarm()
            elif self.selector.armed is not None and task.find_block(self.selector.armed.id):
                self.selector.disarm()
        self._log.info(f"任务已删除: {task_id}")
        safe_notify(self.presenter, "notify_task_list_changed")

    # ── 积木操作 ──

    def add_block(
        self,
        task_id: int,
        kind: Union[str, BlockType],
        parent_id: Optional[str] = None,
        iterations: Optional[int] = None,
    ) -> Block:
        task = self.get_task(task_id)
        self._ensure_editable(task_id)
        kwargs = {}
        if iterations is not None:
            if parse_kind(kind) != BlockType.LOOP:
                raise InvalidBlockError("只有循环积木可以设置次数")
            kwargs["iterations"] = normalize_iterations(iterations)
        with self._transaction():
            block = task.add_block(kind, parent_id=parent_id, **kwargs)
        self._log.info(f"已添加积木: {block.kind.value} (id={block.id}, parent={parent_id})")
        return block

    def set_iterations(self, task_id: int, block_id: str, iterations) -> LoopBlock:
        block = self.get_block(task_id, block_id)
        if not isinstance(block, LoopBlock):
            raise InvalidBlockError("只有循环积木可以设置次数")
        self._ensure_editable(task_id)
        with self._transaction():
            block.iterations = normalize_iterations(iterations)
        return block

    # ── 区域选择 ──

    def arm_block(self, task_id: int, block_id: str) -> TapBlock:
        block = self.get_block(task_id, block_id)
        if not isinstance(block, TapBlock):
            raise InvalidBlockError("只有点击积木可以设置区域")
        self._ensure_editable(task_id)
        self.current_task = self.get_task(task_id)
        self.selector.arm(block)
        return block

    def resize_surface(self, bounds: SurfaceBounds) -> None:
        self.selector.resize(bounds)

    def cancel_selection(self, task_id: int) -> bool:
        """若武装积木属于该任务则取消武装（含进行中的拖拽）"""
        armed = self.selector.armed
        if armed is None:
            return False
        owner = self._owner_of(armed)
        if owner is None or owner.id != task_id:
            return False
        if self.selector.dragging:
            self._log.warning(f"任务 {task_id} 开始执行，取消进行中的选区")
        self.selector.disarm()
        return True

    def _ensure_armed_editable(self) -> None:
        armed = self.selector.armed
        if armed is None:
            return
        owner = self._owner_of(armed)
        if owner is not None and owner.id == self.running_task_id:
            self.selector.disarm()
            raise EngineBusyError("任务正在执行，暂不能修改区域")

    def pointer_down(self, point: Point) -> None:
        self._ensure_armed_editable()
        self.selector.begin(point)

    def pointer_move(self, point: Point) -> None:
        self.selector.update(point)

    def pointer_up(self, point: Optional[Point] = None) -> Optional[Rect]:
        self._ensure_armed_editable()
        armed = self.selector.armed
        previous = armed.region if armed is not None else None
        try:
            return self.selector.end(point)
        except PersistenceFailure:
            armed.region = previous
            raise

    def _on_region_selected(self, block: TapBlock, region: Rect) -> None:
        self.save()


__all__ = ["AppState"]

"""
任务管理API
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ....core.constants import BlockType
from ....core.errors import TapsimError
from ..deps import Runtime, get_runtime, to_http_error


router = APIRouter(prefix="/api/tasks", tags=["tasks"])


class TaskCreate(BaseModel):
    """创建任务"""
    name: Optional[str] = None


class TaskRename(BaseModel):
    """修改任务名"""
    name: str


class BlockCreate(BaseModel):
    """添加积木"""
    type: BlockType
    parent_id: Optional[str] = None  # 为空时追加到任务顶层
    iterations: Optional[int] = None  # 仅 loop


class BlockUpdate(BaseModel):
    """修改循环次数"""
    iterations: Optional[int] = None


def _task_view(runtime: Runtime, task) -> dict:
    data = task.to_dict()
    current = runtime.state.current_task
    data["current"] = current is not None and current.id == task.id
    return data


@router.get("")
async def list_tasks(runtime: Runtime = Depends(get_runtime)):
    """任务列表"""
    tasks = runtime.state.tasks
    return {
        "total": len(tasks),
        "tasks": [_task_view(runtime, t) for t in tasks],
    }


@router.post("")
async def create_task(payload: TaskCreate, runtime: Runtime = Depends(get_runtime)):
    try:
        task = runtime.state.create_task(payload.name)
    except TapsimError as e:
        raise to_http_error(e)
    return _task_view(runtime, task)


@router.get("/{task_id}")
async def get_task(task_id: int, runtime: Runtime = Depends(get_runtime)):
    try:
        task = runtime.state.get_task(task_id)
    except TapsimError as e:
        raise to_http_error(e)
    return _task_view(runtime, task)


@router.patch("/{task_id}")
async def rename_task(task_id: int, payload: TaskRename, runtime: Runtime = Depends(get_runtime)):
    try:
        task = runtime.state.rename_task(task_id, payload.name)
    except TapsimError as e:
        raise to_http_error(e)
    return _task_view(runtime, task)


@router.delete("/{task_id}")
async def delete_task(task_id: int, runtime: Runtime = Depends(get_runtime)):
    try:
        runtime.state.delete_task(task_id)
    except TapsimError as e:
        raise to_http_error(e)
    return {"message": "任务已删除", "id": task_id}


@router.post("/{task_id}/select")
async def select_task(task_id: int, runtime: Runtime = Depends(get_runtime)):
    try:
        task = runtime.state.select_task(task_id)
    except TapsimError as e:
        raise to_http_error(e)
    return _task_view(runtime, task)


@router.post("/{task_id}/blocks")
async def add_block(task_id: int, payload: BlockCreate, runtime: Runtime = Depends(get_runtime)):
    """添加积木到任务顶层或某个 loop/function 积木内"""
    try:
        block = runtime.state.add_block(
            task_id,
            payload.type,
            parent_id=payload.parent_id,
            iterations=payload.iterations,
        )
    except TapsimError as e:
        raise to_http_error(e)
    return block.to_dict()


@router.patch("/{task_id}/blocks/{block_id}")
async def update_block(
    task_id: int,
    block_id: str,
    payload: BlockUpdate,
    runtime: Runtime = Depends(get_runtime),
):
    try:
        block = runtime.state.set_iterations(task_id, block_id, payload.iterations)
    except TapsimError as e:
        raise to_http_error(e)
    return block.to_dict()

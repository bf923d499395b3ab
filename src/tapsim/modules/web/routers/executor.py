"""
Executor API
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ....core.errors import TapsimError
from ..deps import Runtime, get_runtime, to_http_error


router = APIRouter(prefix="/api/executor", tags=["executor"])


class ExecuteRequest(BaseModel):
    task_id: Optional[int] = None  # 为空时执行当前任务


@router.post("/start")
async def start_execution(payload: ExecuteRequest, runtime: Runtime = Depends(get_runtime)):
    try:
        runtime.executor.start(payload.task_id)
    except TapsimError as e:
        raise to_http_error(e)
    return runtime.executor.status()


@router.post("/stop")
async def stop_execution(runtime: Runtime = Depends(get_runtime)):
    stopped = runtime.executor.stop()
    return {"stopped": stopped, **runtime.executor.status()}


@router.get("/status")
async def get_status(runtime: Runtime = Depends(get_runtime)):
    return runtime.executor.status()

"""
Web 层依赖：运行时容器与异常映射
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request

from ...core.errors import (
    EngineBusyError,
    InvalidBlockError,
    PersistenceFailure,
    SelectionError,
    TaskNotFoundError,
    TapsimError,
)
from ..executor.engine import ExecutionEngine
from ..executor.service import ExecutorService
from ..storage.repository import TaskRepository
from ..tasks.state import AppState
from ..ui.presenter import RecordingPresenter


@dataclass
class Runtime:
    """进程内的应用对象集合，挂在 app.state.runtime 上"""
    state: AppState
    engine: ExecutionEngine
    executor: ExecutorService
    presenter: RecordingPresenter


def build_runtime(repository: Optional[TaskRepository] = None, **engine_kwargs) -> Runtime:
    presenter = RecordingPresenter()
    state = AppState(repository or TaskRepository(), presenter=presenter)
    engine = ExecutionEngine(presenter, **engine_kwargs)
    return Runtime(
        state=state,
        engine=engine,
        executor=ExecutorService(engine, state),
        presenter=presenter,
    )


def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime


def to_http_error(exc: TapsimError) -> HTTPException:
    """业务异常 -> HTTP 状态码"""
    if isinstance(exc, TaskNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, EngineBusyError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, (InvalidBlockError, SelectionError)):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, PersistenceFailure):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


__all__ = ["Runtime", "build_runtime", "get_runtime", "to_http_error"]

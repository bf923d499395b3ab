"""
异常定义
"""
from typing import Optional


class TapsimError(Exception):
    """所有业务异常的基类"""


class TaskNotFoundError(TapsimError):
    """任务或积木不存在"""


class InvalidBlockError(TapsimError):
    """积木类型或挂载位置不合法"""


class SelectionError(TapsimError):
    """没有处于武装状态的点击积木时收到拖拽手势"""


class EngineBusyError(TapsimError):
    """同一执行引擎上已有任务在执行"""


class ExecutionEffectFailure(TapsimError):
    """点击效果或展示层通知失败，只在积木级别被捕获"""

    def __init__(self, message: str, block_id: Optional[str] = None):
        super().__init__(message)
        self.block_id = block_id


class PersistenceFailure(TapsimError):
    """任务集合读写失败"""


__all__ = [
    "TapsimError",
    "TaskNotFoundError",
    "InvalidBlockError",
    "SelectionError",
    "EngineBusyError",
    "ExecutionEffectFailure",
    "PersistenceFailure",
]

"""
常量和枚举定义
"""
from enum import Enum


class BlockType(str, Enum):
    """积木类型"""
    TAP = "tap"  # 区域点击
    LOOP = "loop"  # 循环
    FUNCTION = "function"  # 函数（顺序子组）


class RunStatus(str, Enum):
    """执行状态"""
    EMPTY = "empty"  # 没有可执行的积木
    SUCCEEDED = "succeeded"
    FAILED = "failed"  # 完成，但有积木出错被吞掉
    CANCELLED = "cancelled"


class SelectorState(str, Enum):
    """区域选择状态"""
    IDLE = "idle"
    DRAGGING = "dragging"


# 默认任务名
DEFAULT_TASK_NAME = "New Task"

# 循环默认次数
DEFAULT_ITERATIONS = 1

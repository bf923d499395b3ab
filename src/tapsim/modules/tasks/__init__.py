"""
任务模块
"""
from .model import (
    Block,
    FunctionBlock,
    LoopBlock,
    TapBlock,
    Task,
    block_from_dict,
    make_block,
    normalize_iterations,
)

__all__ = [
    "Block",
    "FunctionBlock",
    "LoopBlock",
    "TapBlock",
    "Task",
    "block_from_dict",
    "make_block",
    "normalize_iterations",
]

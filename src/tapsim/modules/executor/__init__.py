from .engine import ExecutionEngine
from .types import BlockError, CancelToken, RunCancelled, RunReport, TapEvent

__all__ = [
    "ExecutionEngine",
    "BlockError",
    "CancelToken",
    "RunCancelled",
    "RunReport",
    "TapEvent",
]

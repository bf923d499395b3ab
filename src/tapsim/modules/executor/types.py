"""
执行器类型和数据结构
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ...core.constants import RunStatus


class RunCancelled(Exception):
    """取消令牌触发后在积木遍历中抛出"""


class CancelToken:
    """协作式停止标志，随积木递归向下传递"""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RunCancelled()


@dataclass
class TapEvent:
    block_id: str
    x: float
    y: float


@dataclass
class BlockError:
    block_id: str
    message: str


@dataclass
class RunReport:
    task_id: int
    status: Optional[RunStatus] = None
    taps: List[TapEvent] = field(default_factory=list)
    blocks_executed: int = 0
    skipped_unconfigured: int = 0
    errors: List[BlockError] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None

    @property
    def effects(self) -> int:
        return len(self.taps)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def finished(self) -> bool:
        return self.finished_at is not None

    def finish(self, status: RunStatus) -> "RunReport":
        self.status = status
        self.finished_at = datetime.utcnow()
        return self

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "status": self.status.value if self.status else None,
            "effects": self.effects,
            "blocks_executed": self.blocks_executed,
            "skipped_unconfigured": self.skipped_unconfigured,
            "error_count": self.error_count,
            "errors": [{"block_id": e.block_id, "message": e.message} for e in self.errors],
            "taps": [{"block_id": t.block_id, "x": t.x, "y": t.y} for t in self.taps],
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }

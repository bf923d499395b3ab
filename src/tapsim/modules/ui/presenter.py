"""
展示层适配接口，供执行引擎和区域选择器调用

通知只发不等：调用方统一经过 safe_notify，展示层异常不会中断执行或选区手势。
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Deque, Optional, Protocol

from ...core.logger import logger
from ..geometry import Rect

_log = logger.bind(module="Presenter")


class PresentationAdapter(Protocol):
    def notify_block_enter(self, block_id: str) -> None:
        """积木开始执行（高亮）"""
        ...

    def notify_block_exit(self, block_id: str) -> None:
        """积木执行结束（无论成功与否）"""
        ...

    def notify_region_changed(self, block_id: str, region: Rect) -> None:
        """点击积木的区域已更新"""
        ...

    def notify_task_list_changed(self) -> None:
        ...


class NullPresenter:
    """忽略所有通知"""

    def notify_block_enter(self, block_id: str) -> None:
        return None

    def notify_block_exit(self, block_id: str) -> None:
        return None

    def notify_region_changed(self, block_id: str, region: Rect) -> None:
        return None

    def notify_task_list_changed(self) -> None:
        return None

    def notify_tap(self, block_id: Optional[str], x: float, y: float) -> None:
        return None


@dataclass
class PresenterEvent:
    seq: int
    kind: str
    block_id: Optional[str] = None
    data: Optional[dict[str, Any]] = None
    ts: str = field(default_factory=lambda: datetime.utcnow().isoformat())

    def to_dict(self) -> dict[str, Any]:
        return {
            "seq": self.seq,
            "kind": self.kind,
            "block_id": self.block_id,
            "data": self.data,
            "ts": self.ts,
        }


class RecordingPresenter:
    """在有界缓冲中保留最近的通知

    HTTP 接口把缓冲区提供给轮询的前端，前端据此切换高亮、刷新区域标签。
    """

    def __init__(self, maxlen: int = 500) -> None:
        self._events: Deque[PresenterEvent] = deque(maxlen=maxlen)
        self._seq = 0

    def _push(self, kind: str, block_id: Optional[str] = None, data: Optional[dict] = None) -> None:
        self._seq += 1
        self._events.append(PresenterEvent(self._seq, kind, block_id, data))

    def notify_block_enter(self, block_id: str) -> None:
        self._push("block_enter", block_id)

    def notify_block_exit(self, block_id: str) -> None:
        self._push("block_exit", block_id)

    def notify_region_changed(self, block_id: str, region: Rect) -> None:
        self._push(
            "region_changed",
            block_id,
            {"region": region.to_dict(), "label": region.label()},
        )

    def notify_task_list_changed(self) -> None:
        self._push("task_list_changed")

    def notify_tap(self, block_id: Optional[str], x: float, y: float) -> None:
        self._push("tap", block_id, {"x": x, "y": y})

    def events(self, after: int = 0) -> list[PresenterEvent]:
        """返回序号大于 after 的事件"""
        return [e for e in self._events if e.seq > after]

    def clear(self) -> None:
        self._events.clear()


def safe_notify(presenter: Optional[PresentationAdapter], method: str, *args) -> bool:
    """调用展示层钩子，异常只记录日志不向上抛出

    钩子正常返回时结果为 True。
    """
    if presenter is None:
        return True
    try:
        getattr(presenter, method)(*args)
        return True
    except Exception as e:
        _log.warning(f"展示层通知失败 {method}{args}: {e}")
        return False


__all__ = [
    "PresentationAdapter",
    "NullPresenter",
    "RecordingPresenter",
    "PresenterEvent",
    "safe_notify",
]

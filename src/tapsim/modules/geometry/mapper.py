"""
几何映射：设备坐标 <-> 模拟器表面屏幕坐标

设备是固定的逻辑画布（默认 320x720），与表面实际绘制尺寸无关。
所有保存的区域都使用设备坐标。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ...core.config import settings


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class SurfaceBounds:
    """模拟器表面在屏幕上的尺寸（像素）"""

    width: float
    height: float


@dataclass
class Rect:
    """由两个角点确定的矩形，角点不要求有序"""

    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def left(self) -> float:
        return min(self.x1, self.x2)

    @property
    def top(self) -> float:
        return min(self.y1, self.y2)

    @property
    def right(self) -> float:
        return max(self.x1, self.x2)

    @property
    def bottom(self) -> float:
        return max(self.y1, self.y2)

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def normalized(self) -> "Rect":
        """返回 min/max 排序后的外接框"""
        return Rect(self.left, self.top, self.right, self.bottom)

    def label(self) -> str:
        return (
            f"Region: ({round(self.x1)}, {round(self.y1)}) - "
            f"({round(self.x2)}, {round(self.y2)})"
        )

    def to_dict(self) -> dict:
        return {"x1": self.x1, "y1": self.y1, "x2": self.x2, "y2": self.y2}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["Rect"]:
        if not data:
            return None
        return cls(
            x1=float(data["x1"]),
            y1=float(data["y1"]),
            x2=float(data["x2"]),
            y2=float(data["y2"]),
        )


def _device_size() -> tuple[int, int]:
    return settings.device_width, settings.device_height


def to_device_space(point: Point, bounds: SurfaceBounds) -> Point:
    """表面坐标（相对表面左上角的像素）换算为设备坐标"""
    dev_w, dev_h = _device_size()
    return Point(
        x=(point.x / bounds.width) * dev_w,
        y=(point.y / bounds.height) * dev_h,
    )


def to_screen_space(point: Point, bounds: SurfaceBounds) -> Point:
    """设备坐标换算为表面坐标"""
    dev_w, dev_h = _device_size()
    return Point(
        x=(point.x / dev_w) * bounds.width,
        y=(point.y / dev_h) * bounds.height,
    )


def rect_to_device_space(rect: Rect, bounds: SurfaceBounds) -> Rect:
    p1 = to_device_space(Point(rect.x1, rect.y1), bounds)
    p2 = to_device_space(Point(rect.x2, rect.y2), bounds)
    return Rect(p1.x, p1.y, p2.x, p2.y)


def rect_to_screen_space(rect: Rect, bounds: SurfaceBounds) -> Rect:
    p1 = to_screen_space(Point(rect.x1, rect.y1), bounds)
    p2 = to_screen_space(Point(rect.x2, rect.y2), bounds)
    return Rect(p1.x, p1.y, p2.x, p2.y)

"""
区域选择器

把模拟器表面上的指针拖拽手势转换为设备坐标矩形，写入当前“武装”的点击积木。

状态机: IDLE -> DRAGGING -> IDLE。同一时刻只有一个积木处于武装状态，
重新武装会隐式取消进行中的拖拽。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from ...core.constants import SelectorState
from ...core.errors import SelectionError
from ...core.logger import logger
from ..geometry import Point, Rect, SurfaceBounds, rect_to_device_space, rect_to_screen_space
from ..tasks.model import TapBlock
from .presenter import PresentationAdapter, safe_notify


@dataclass
class Overlay:
    """屏幕坐标下的选择框（始终为 min/max 排序后的框）"""
    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0
    visible: bool = False

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def show_rect(self, rect: Rect) -> None:
        self.left = rect.left
        self.top = rect.top
        self.width = rect.width
        self.height = rect.height
        self.visible = True

    def hide(self) -> None:
        self.visible = False

    def to_dict(self) -> dict:
        return {
            "left": self.left,
            "top": self.top,
            "width": self.width,
            "height": self.height,
            "visible": self.visible,
        }


class RegionSelector:
    """拖拽选区状态机"""

    def __init__(
        self,
        bounds: SurfaceBounds,
        presenter: Optional[PresentationAdapter] = None,
        on_region: Optional[Callable[[TapBlock, Rect], None]] = None,
    ) -> None:
        self.bounds = bounds
        self.presenter = presenter
        self.on_region = on_region
        self.state = SelectorState.IDLE
        self.overlay = Overlay()
        self._armed: Optional[TapBlock] = None
        self._start = Point(0.0, 0.0)
        self._log = logger.bind(module="RegionSelector")

    @property
    def armed(self) -> Optional[TapBlock]:
        return self._armed

    @property
    def dragging(self) -> bool:
        return self.state == SelectorState.DRAGGING

    def resize(self, bounds: SurfaceBounds) -> None:
        """表面尺寸变化；已有选区按新尺寸重新投影"""
        self.bounds = bounds
        if not self.dragging and self._armed is not None and self._armed.region is not None:
            self.overlay.show_rect(rect_to_screen_space(self._armed.region, bounds))

    def arm(self, block: TapBlock) -> None:
        """武装一个点击积木作为下一次选区的目标"""
        if not isinstance(block, TapBlock):
            raise SelectionError("只有点击积木可以设置区域")
        if self.dragging:
            self._log.debug("重新武装，取消进行中的拖拽")
        self.state = SelectorState.IDLE
        self._armed = block
        if block.region is not None:
            self.overlay.show_rect(rect_to_screen_space(block.region, self.bounds))
        else:
            self.overlay.hide()

    def disarm(self) -> None:
        self.state = SelectorState.IDLE
        self._armed = None
        self.overlay.hide()

    def begin(self, point: Point) -> None:
        """按下指针：记录起点，显示零尺寸选择框"""
        if self._armed is None:
            raise SelectionError("没有处于武装状态的点击积木")
        self._start = point
        self.overlay.show_rect(Rect(point.x, point.y, point.x, point.y))
        self.state = SelectorState.DRAGGING
        self._log.info(f"开始选区: ({point.x}, {point.y})")

    def update(self, point: Point) -> None:
        """移动指针：选择框为起点与当前点之间的轴对齐框"""
        if not self.dragging:
            return
        self.overlay.show_rect(Rect(self._start.x, self._start.y, point.x, point.y))

    def end(self, point: Optional[Point] = None) -> Optional[Rect]:
        """抬起指针：把选择框换算到设备坐标并写入武装积木

        零尺寸的选区同样会被写入，便于精确点选。
        """
        if not self.dragging:
            return None
        if point is not None:
            self.update(point)
        self.state = SelectorState.IDLE

        screen = Rect(self.overlay.left, self.overlay.top, self.overlay.right, self.overlay.bottom)
        region = rect_to_device_space(screen, self.bounds)
        block = self._armed
        block.region = region

        if self.on_region is not None:
            self.on_region(block, region)
        self._log.success(f"区域已选择: {region.label()}")
        safe_notify(self.presenter, "notify_region_changed", block.id, region)
        return region


__all__ = ["Overlay", "RegionSelector"]

"""
模拟器表面API：武装点击积木、转发指针事件、读取展示层事件
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ....core.errors import TapsimError
from ...geometry import Point, SurfaceBounds
from ..deps import Runtime, get_runtime, to_http_error


router = APIRouter(prefix="/api/simulator", tags=["simulator"])


class ArmRequest(BaseModel):
    task_id: int
    block_id: str


class PointerEvent(BaseModel):
    """指针事件，坐标相对于模拟器表面左上角（像素）"""
    x: float
    y: float
    width: Optional[float] = Field(default=None, gt=0)  # 表面当前宽度
    height: Optional[float] = Field(default=None, gt=0)  # 表面当前高度


def _apply_bounds(runtime: Runtime, event: PointerEvent) -> None:
    if event.width and event.height:
        runtime.state.resize_surface(SurfaceBounds(event.width, event.height))


def _selector_view(runtime: Runtime) -> dict:
    selector = runtime.state.selector
    armed = selector.armed
    return {
        "state": selector.state.value,
        "armed_block_id": armed.id if armed else None,
        "overlay": selector.overlay.to_dict(),
        "region": armed.region.to_dict() if armed and armed.region else None,
        "label": armed.region.label() if armed and armed.region else None,
    }


@router.post("/arm")
async def arm_block(payload: ArmRequest, runtime: Runtime = Depends(get_runtime)):
    """设置下一次拖拽选区的目标积木"""
    try:
        runtime.state.arm_block(payload.task_id, payload.block_id)
    except TapsimError as e:
        raise to_http_error(e)
    return _selector_view(runtime)


@router.post("/disarm")
async def disarm(runtime: Runtime = Depends(get_runtime)):
    runtime.state.selector.disarm()
    return _selector_view(runtime)


@router.post("/pointer/down")
async def pointer_down(event: PointerEvent, runtime: Runtime = Depends(get_runtime)):
    _apply_bounds(runtime, event)
    try:
        runtime.state.pointer_down(Point(event.x, event.y))
    except TapsimError as e:
        raise to_http_error(e)
    return _selector_view(runtime)


@router.post("/pointer/move")
async def pointer_move(event: PointerEvent, runtime: Runtime = Depends(get_runtime)):
    runtime.state.pointer_move(Point(event.x, event.y))
    return _selector_view(runtime)


@router.post("/pointer/up")
async def pointer_up(event: PointerEvent, runtime: Runtime = Depends(get_runtime)):
    try:
        runtime.state.pointer_up(Point(event.x, event.y))
    except TapsimError as e:
        raise to_http_error(e)
    return _selector_view(runtime)


@router.get("/selection")
async def get_selection(runtime: Runtime = Depends(get_runtime)):
    return _selector_view(runtime)


@router.get("/events")
async def get_events(
    after: int = Query(0, description="只返回序号大于该值的事件"),
    runtime: Runtime = Depends(get_runtime),
):
    """展示层事件（高亮进入/退出、点击反馈、区域变化、任务列表变化）"""
    events = runtime.presenter.events(after)
    return {
        "last_seq": events[-1].seq if events else after,
        "events": [e.to_dict() for e in events],
    }

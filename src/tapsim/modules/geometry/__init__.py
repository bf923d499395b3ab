from .mapper import (
    Point,
    Rect,
    SurfaceBounds,
    rect_to_device_space,
    rect_to_screen_space,
    to_device_space,
    to_screen_space,
)

__all__ = [
    "Point",
    "Rect",
    "SurfaceBounds",
    "rect_to_device_space",
    "rect_to_screen_space",
    "to_device_space",
    "to_screen_space",
]

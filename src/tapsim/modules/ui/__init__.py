from .presenter import (
    NullPresenter,
    PresentationAdapter,
    PresenterEvent,
    RecordingPresenter,
    safe_notify,
)
from .selector import Overlay, RegionSelector

__all__ = [
    "NullPresenter",
    "PresentationAdapter",
    "PresenterEvent",
    "RecordingPresenter",
    "safe_notify",
    "Overlay",
    "RegionSelector",
]

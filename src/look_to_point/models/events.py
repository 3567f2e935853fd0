from dataclasses import dataclass
from enum import Enum, auto
from typing import Union

from .camera import CameraInfo


class PointerEvent(Enum):
    """Pointer events reported by a display surface."""
    PRIMARY_DOWN = auto()
    PRIMARY_UP = auto()
    MOVE = auto()
    OTHER = auto()


@dataclass(slots=True, frozen=True)
class CalibrationReceived:
    info: CameraInfo


@dataclass(slots=True, frozen=True)
class FrameReceived:
    """A new frame is waiting in the runner's frame slot."""


@dataclass(slots=True, frozen=True)
class ClickReceived:
    event: PointerEvent
    u: int
    v: int


@dataclass(slots=True, frozen=True)
class StopRequested:
    reason: str = ""


Event = Union[CalibrationReceived, FrameReceived, ClickReceived, StopRequested]

from .camera import Header, IntrinsicMatrix, CameraInfo, ImageFrame, RayPoint
from .goal import GazeGoal, OPTICAL_AXIS
from .events import (
    PointerEvent,
    CalibrationReceived,
    FrameReceived,
    ClickReceived,
    StopRequested,
    Event,
)

from .errors import (
    LookToPointError,
    ClockUnavailable,
    ActuationServiceUnavailable,
    MalformedCalibration,
    MessageDecodeError,
    FrameDecodeError,
)
from .state import AppState, ConnectionState, ExitStatus

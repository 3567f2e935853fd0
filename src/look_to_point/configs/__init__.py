from .app import (
    AppSettings,
    CameraSettings,
    TransportSettings,
    ActuationSettings,
    GazeSettings,
    StartupSettings,
    DisplaySettings,
    DummySettings,
)
from .utils import LoggingConfig

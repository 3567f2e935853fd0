import logging
from importlib.metadata import version

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, PositiveInt, PositiveFloat, model_validator, Field

from .utils import LoggingConfig

logger = logging.getLogger(__name__)


class CameraSettings(BaseModel):
    """Names of the camera topics, its optical frame and the viewer window."""
    window_name: str = Field("Robot left eye", description="Title of the window showing the camera feed.")
    camera_frame: str = Field("/stereo_optical_frame", description="Optical frame the clicked rays are expressed in.")
    image_topic: str = Field("/stereo/left/image", description="Topic carrying the image stream.")
    camera_info_topic: str = Field("/stereo/left/camera_info", description="Topic carrying the camera intrinsics.")


class TransportSettings(BaseModel):
    endpoint: str = Field("tcp://localhost:5556", description="ZMQ endpoint of the camera publisher.")
    image_queue_size: PositiveInt = Field(1, description="Receive high water mark for image topics.")


class ActuationSettings(BaseModel):
    """
    Settings of the head-pointing action service.
    The action lives at `base_url + service_name`.
    """
    base_url: str = Field("http://localhost:8080", description="Root URL of the action server.")
    service_name: str = Field("/head_traj_controller/point_head_action")
    timeout_per_attempt_s: PositiveFloat = Field(2.0, description="Time to wait for the server on each attempt.")
    max_attempts: PositiveInt = Field(3, description="Number of connection attempts before giving up.")
    ready_poll_interval_s: PositiveFloat = Field(0.1, description="Interval between readiness probes.")
    request_timeout_s: PositiveFloat = Field(2.0, description="Timeout of a single HTTP request.")

    @model_validator(mode='after')
    def validate_intervals(self) -> "ActuationSettings":
        if self.ready_poll_interval_s > self.timeout_per_attempt_s:
            raise ValueError('Readiness poll interval must not exceed the per-attempt timeout.')
        return self


class GazeSettings(BaseModel):
    """Motion limits sent along with every gaze goal."""
    min_duration_s: PositiveFloat = Field(0.5, description="Minimum duration of the head motion.")
    max_velocity: PositiveFloat = Field(1.0, description="Maximum angular velocity of the head (rad/s).")


class StartupSettings(BaseModel):
    use_sim_time: bool = Field(False, description="Take time from the clock topic instead of the wall clock.")
    clock_topic: str = "/clock"
    clock_timeout_s: PositiveFloat = Field(5.0, description="Time to wait for a valid clock.")
    intrinsics_poll_interval_s: PositiveFloat = Field(0.2, description="Poll interval while waiting for intrinsics.")


class DisplaySettings(BaseModel):
    poll_interval_s: PositiveFloat = Field(0.015, description="Time between two pumps of the window events.")


class DummySettings(BaseModel):
    """Geometry of the simulated camera used in dummy mode."""
    width_px: PositiveInt = 640
    height_px: PositiveInt = 480
    fx: PositiveFloat = 500.0
    fy: PositiveFloat = 500.0
    frequency_hz: PositiveFloat = Field(15.0, description="Rate of the simulated image stream.")
    discovery_delay_s: float = Field(0.5, ge=0, description="Simulated action server discovery time.")


class AppSettings(BaseSettings):
    """
    Main application settings, loaded from environment variables and defaults.
    """
    use_dummy_mode: bool = False

    camera: CameraSettings = Field(default_factory=CameraSettings)
    transport: TransportSettings = Field(default_factory=TransportSettings)
    actuation: ActuationSettings = Field(default_factory=ActuationSettings)
    gaze: GazeSettings = Field(default_factory=GazeSettings)
    startup: StartupSettings = Field(default_factory=StartupSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    dummy: DummySettings = Field(default_factory=DummySettings)

    # Logging
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    __version__: str = version("look-to-point")

    model_config = SettingsConfigDict(
        env_prefix="LTP__",
        env_file=".env",
        env_nested_delimiter='__',
        case_sensitive=False
    )

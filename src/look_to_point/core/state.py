from enum import Enum, IntEnum, auto


class AppState(Enum):
    """
    Defines the distinct operational states of the look-to-point application.

    States are only ever traversed forwards; any of them may jump straight
    to SHUTTING_DOWN on a stop request or a fatal error.
    """
    INIT = auto()  # Waiting for a valid clock.
    WAITING_FOR_INTRINSICS = auto() # Subscribed to the camera info topic.
    WAITING_FOR_ACTUATION_SERVICE = auto() # Connecting to the head controller.
    RUNNING = auto() # Showing images and dispatching clicks.
    SHUTTING_DOWN = auto() # Releasing the display and the connections.


class ConnectionState(Enum):
    """Lifecycle of the session with the head controller action server."""
    DISCONNECTED = auto()
    CONNECTING = auto()
    READY = auto()
    FAILED = auto()


class ExitStatus(IntEnum):
    """Process exit codes."""
    SUCCESS = 0
    FAILURE = 1

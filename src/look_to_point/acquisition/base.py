from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Any, Callable


class MessageKind(Enum):
    """Message types a transport knows how to decode."""
    CAMERA_INFO = auto()  # -> CameraInfo
    IMAGE = auto()  # -> ImageFrame
    CLOCK = auto()  # -> float (seconds)


MessageCallback = Callable[[Any], None]


class Subscription(ABC):
    """
    Handle on an active topic subscription.

    Callbacks are invoked on the event loop thread, one message at a time.
    """

    def __init__(self, topic: str, kind: MessageKind, callback: MessageCallback):
        self.topic = topic
        self.kind = kind
        self._callback = callback

    @property
    @abstractmethod
    def is_active(self) -> bool:
        ...

    @abstractmethod
    def shutdown(self) -> None:
        """
        Stops delivering messages. Safe to call more than once, and from
        inside the subscription's own callback.
        """
        ...


class Transport(ABC):
    """
    Abstract publish/subscribe transport carrying camera data.
    """

    @abstractmethod
    def subscribe(self, topic: str, kind: MessageKind, callback: MessageCallback) -> Subscription:
        """Must be called from within a running event loop."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Shuts down every subscription and releases the transport."""
        ...

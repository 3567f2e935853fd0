import asyncio
import logging
from asyncio import Queue, Event
from typing import Optional

from ..models import CameraInfo, CalibrationReceived, IntrinsicMatrix, StopRequested, Event as AppEvent
from .base import MessageKind, Subscription, Transport

logger = logging.getLogger(__name__)


class IntrinsicsAcquirer:
    """
    Reads the camera intrinsics once from the camera info topic.

    Calibration is assumed static for the lifetime of the process: the
    first message is kept, then the subscription is torn down.
    """

    def __init__(self, transport: Transport, topic: str, poll_interval_s: float = 0.2):
        if poll_interval_s <= 0:
            raise ValueError("poll_interval_s must be positive.")

        self._transport = transport
        self._topic = topic
        self._poll_interval_s = poll_interval_s
        self._subscription: Optional[Subscription] = None
        self._intrinsics: Optional[IntrinsicMatrix] = None

    @property
    def received(self) -> bool:
        return self._intrinsics is not None

    @property
    def intrinsics(self) -> Optional[IntrinsicMatrix]:
        return self._intrinsics

    def handle(self, info: CameraInfo) -> None:
        """
        Stores the intrinsics of the first calibration message and
        unsubscribes. Raises MalformedCalibration on a degenerate matrix.
        """
        if self.received:
            return

        self._intrinsics = IntrinsicMatrix.from_k(info.k)
        logger.info(
            "Camera intrinsics received: fx=%.2f fy=%.2f cx=%.2f cy=%.2f",
            self._intrinsics.fx, self._intrinsics.fy, self._intrinsics.cx, self._intrinsics.cy,
        )
        self._unsubscribe()

    async def wait(self, events: Queue[AppEvent], stop_event: Event) -> Optional[IntrinsicMatrix]:
        """
        Subscribes to the calibration topic and services `events` until the
        intrinsics arrive.

        Calibration messages are routed through `events` as
        CalibrationReceived. The stop event is checked on every poll cycle,
        so cancellation is honoured within one poll interval even if no
        message ever arrives.

        Returns:
            The intrinsics, or None if a stop was requested first.
        """
        if self.received:
            return self._intrinsics

        logger.info("Waiting for camera intrinsics ...")
        self._subscription = self._transport.subscribe(
            self._topic,
            MessageKind.CAMERA_INFO,
            lambda info: events.put_nowait(CalibrationReceived(info)),
        )

        try:
            while not self.received and not stop_event.is_set():
                try:
                    event = await asyncio.wait_for(events.get(), timeout=self._poll_interval_s)
                except asyncio.TimeoutError:
                    continue

                if isinstance(event, CalibrationReceived):
                    self.handle(event.info)
                elif isinstance(event, StopRequested):
                    stop_event.set()
        finally:
            self._unsubscribe()

        if not self.received:
            logger.info("Stopped while waiting for camera intrinsics.")
        return self._intrinsics

    def _unsubscribe(self) -> None:
        if self._subscription is not None:
            self._subscription.shutdown()
            self._subscription = None

import asyncio
import logging
import time
from typing import Optional, Set

import cv2
import numpy as np

from ..models import CameraInfo, Header, ImageFrame
from .base import MessageCallback, MessageKind, Subscription, Transport

logger = logging.getLogger(__name__)


class DummySubscription(Subscription):
    """Feeds one subscriber from a simulated publisher task."""

    def __init__(self, transport: "DummyTransport", topic: str, kind: MessageKind, callback: MessageCallback):
        super().__init__(topic, kind, callback)
        self._transport = transport
        self._task: Optional[asyncio.Task] = asyncio.get_running_loop().create_task(self._publish_loop())

    @property
    def is_active(self) -> bool:
        return self._task is not None

    async def _publish_loop(self) -> None:
        """
        Publishes simulated messages at the rate of their kind until the
        subscription is shut down.
        """
        interval_s = self._transport.interval_for(self.kind)
        start_time = time.monotonic()
        counter = 0

        try:
            while self._task is not None:
                target_time = start_time + (counter * interval_s)

                self._callback(self._transport.make_message(self.kind, counter))
                counter += 1

                # Sleep until the next message's target time
                sleep_duration = target_time + interval_s - time.monotonic()
                await asyncio.sleep(max(sleep_duration, 0.0))

        except asyncio.CancelledError:
            logger.debug(f"Dummy publisher of '{self.topic}' cancelled.")
        except Exception:
            logger.exception(f"Dummy publisher of '{self.topic}' failed.")

    def shutdown(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        if task is not asyncio.current_task():
            task.cancel()
        self._transport.forget(self)


class DummyTransport(Transport):
    """
    A Transport that simulates a calibrated camera for development and testing.

    Camera info is republished once per second, as camera drivers do. Frames
    are a colour gradient with a marker on the principal point, so a click on
    the marker should leave the head where it is. Clock messages count
    simulated seconds from 1.0.
    """

    CAMERA_INFO_INTERVAL_S = 1.0
    CLOCK_INTERVAL_S = 0.01

    def __init__(
        self,
        width: int = 640,
        height: int = 480,
        fx: float = 500.0,
        fy: float = 500.0,
        frequency: float = 15.0,
        frame_id: str = "/stereo_optical_frame",
    ):
        if frequency <= 0:
            raise ValueError("Frequency must be positive.")

        self.width = width
        self.height = height
        self.k = (fx, 0.0, width / 2.0, 0.0, fy, height / 2.0, 0.0, 0.0, 1.0)
        self.frame_id = frame_id
        self._frame_interval_s = 1.0 / frequency
        self._start = time.monotonic()
        self._subscriptions: Set[DummySubscription] = set()

        logger.info(f"DummyTransport initialized: {width}x{height} camera at {frequency} Hz.")

    def interval_for(self, kind: MessageKind) -> float:
        if kind is MessageKind.IMAGE:
            return self._frame_interval_s
        if kind is MessageKind.CLOCK:
            return self.CLOCK_INTERVAL_S
        return self.CAMERA_INFO_INTERVAL_S

    def make_message(self, kind: MessageKind, counter: int):
        stamp = time.time()
        if kind is MessageKind.CAMERA_INFO:
            return CameraInfo(
                header=Header(self.frame_id, stamp), width=self.width, height=self.height, k=self.k
            )
        if kind is MessageKind.IMAGE:
            return ImageFrame(
                header=Header(self.frame_id, stamp), encoding="bgr8", image=self._render_frame(counter)
            )
        return 1.0 + (time.monotonic() - self._start)

    def _render_frame(self, counter: int) -> np.ndarray:
        cols = np.linspace(0, 255, self.width, dtype=np.float32)
        rows = np.linspace(0, 255, self.height, dtype=np.float32)
        image = np.empty((self.height, self.width, 3), dtype=np.uint8)
        image[:, :, 0] = (cols[None, :] + counter * 4) % 256
        image[:, :, 1] = rows[:, None]
        image[:, :, 2] = 128

        center = (int(self.k[2]), int(self.k[5]))
        cv2.drawMarker(image, center, (255, 255, 255), cv2.MARKER_CROSS, 40, 2)
        return image

    def subscribe(self, topic: str, kind: MessageKind, callback: MessageCallback) -> DummySubscription:
        logger.info(f"[Dummy] Subscribed to '{topic}'")
        sub = DummySubscription(self, topic, kind, callback)
        self._subscriptions.add(sub)
        return sub

    def forget(self, sub: DummySubscription) -> None:
        self._subscriptions.discard(sub)

    async def close(self) -> None:
        for sub in list(self._subscriptions):
            sub.shutdown()
        await asyncio.sleep(0)

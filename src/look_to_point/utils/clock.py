import asyncio
import logging
import time
from typing import Optional

from ..acquisition.base import MessageKind, Subscription, Transport

logger = logging.getLogger(__name__)

_VALIDITY_POLL_S = 0.01


class Clock:
    """
    Source of the timestamps attached to outgoing goals.

    The base implementation is the wall clock, which is always valid.
    """

    def now(self) -> float:
        return time.time()

    @property
    def is_valid(self) -> bool:
        return True

    async def wait_for_valid(self, timeout_s: float, stop_event: Optional[asyncio.Event] = None) -> bool:
        """
        Waits until the clock reports a valid time.

        Returns False if `timeout_s` elapses (measured on the wall clock) or
        `stop_event` is set before that happens.
        """
        deadline = time.monotonic() + timeout_s
        while not self.is_valid:
            if stop_event is not None and stop_event.is_set():
                return False
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(_VALIDITY_POLL_S)
        return True

    def close(self) -> None:
        pass


class SimClock(Clock):
    """
    Clock driven by stamps published on a clock topic, for simulated or
    externally driven time. Time stays invalid (zero) until the first stamp
    arrives, which may only happen once the simulator starts publishing.
    """

    def __init__(self, transport: Transport, topic: str = "/clock"):
        self._transport = transport
        self._topic = topic
        self._stamp: float = 0.0
        self._subscription: Optional[Subscription] = None

    def start(self) -> None:
        if self._subscription is None:
            logger.info(f"Using simulated time from '{self._topic}'.")
            self._subscription = self._transport.subscribe(self._topic, MessageKind.CLOCK, self._on_clock)

    def _on_clock(self, stamp: float) -> None:
        self._stamp = stamp

    def now(self) -> float:
        return self._stamp

    @property
    def is_valid(self) -> bool:
        return self._stamp > 0.0

    async def wait_for_valid(self, timeout_s: float, stop_event: Optional[asyncio.Event] = None) -> bool:
        self.start()
        return await super().wait_for_valid(timeout_s, stop_event)

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.shutdown()
            self._subscription = None
